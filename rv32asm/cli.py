"""
Command-line entry point.

    rv32asm program.s            -> program.s.hex
    rv32asm program.s --bin      -> program.s.hex and program.s.bin
"""
import argparse
import os
import sys

from .assembler import Program, first_pass, second_pass
from .errors import AssemblerError
from .hexfile import format_listing, write_bin, write_hex
from .lexer import tokenize

HEX_SUFFIX = ".hex"


def build_parser():
    parser = argparse.ArgumentParser(
        prog="rv32asm",
        description="Assemble RV32I source into one hex machine word per line.")
    parser.add_argument("source", help="assembly source file")
    parser.add_argument("-o", "--output",
                        help="hex output path (default: <source>.hex)")
    parser.add_argument("--bin", action="store_true",
                        help="also write the words as 32-bit binary text (.bin)")
    parser.add_argument("--listing", action="store_true",
                        help="print address, word and binary for every instruction")
    parser.add_argument("--symbols", action="store_true",
                        help="print the symbol table")
    return parser


def run(source_path, output_path, write_binary=False, listing=False, symbols=False):
    """Assemble one file. Errors propagate to the caller."""
    # Input is plain 8-bit text; latin-1 maps every byte
    with open(source_path, "r", encoding="latin-1") as f:
        source = f.read()
    print(f"Read '{source_path}'")

    tokens = tokenize(source)

    print("=== PASS 1: symbol resolution ===")
    labels, _ = first_pass(tokens)
    print(f"Labels found: {len(labels)}")
    if symbols:
        for name, address in labels.items():
            print(f"  {name:<16} 0x{address:08x}")

    print("=== PASS 2: binary generation ===")
    machine_code, addresses = second_pass(tokens, labels)
    program = Program(machine_code, addresses, labels)

    write_hex(output_path, program.words)
    print(f"Hex file written to '{output_path}'")
    if write_binary:
        bin_path = os.path.splitext(output_path)[0] + ".bin"
        write_bin(bin_path, program.words)
        print(f"Binary text file written to '{bin_path}'")

    if listing:
        print("=== MACHINE CODE ===")
        for line in format_listing(program):
            print(line)

    return program


def main(argv=None):
    args = build_parser().parse_args(argv)
    output_path = args.output or args.source + HEX_SUFFIX

    try:
        program = run(args.source, output_path, args.bin, args.listing, args.symbols)
    except (AssemblerError, OSError) as e:
        print(f"[Error] {e}", file=sys.stderr)
        return 1

    count = len(program.words)
    print(f"Assembly complete: {count} instructions ({count * 4} bytes)")
    return 0
