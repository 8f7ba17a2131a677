"""
Output writers.

The hex file holds one lowercase, zero-padded 8-digit word per line in program
order. The ``.bin`` variant writes the same words as 32-character binary text.
"""

MASK32 = 0xFFFFFFFF


def format_hex(words):
    return [f"{word & MASK32:08x}" for word in words]


def format_bin(words):
    return [f"{word & MASK32:032b}" for word in words]


def format_listing(program):
    """One ``0x<addr>: 0x<word> | <binary>`` line per encoded instruction."""
    lines = []
    for pc, word in zip(program.addresses, program.words):
        lines.append(f"0x{pc:08x}: 0x{word & MASK32:08x} | {word & MASK32:032b}")
    return lines


def write_hex(path, words):
    with open(path, "w", encoding="ascii") as f:
        for line in format_hex(words):
            f.write(line + "\n")


def write_bin(path, words):
    with open(path, "w", encoding="ascii") as f:
        for line in format_bin(words):
            f.write(line + "\n")
