"""
RV32I two-pass assembler.

The first pass walks the token list binding labels to addresses; the second
walks it again and encodes one 32-bit word per instruction. Supported:
- R, I, S, B, U and J formats of the base integer set
- Pseudo-instructions nop, mv, not
- Forward and backward label references
- The .org directive (relocates the program counter, emits nothing)
"""
from dataclasses import dataclass, field

from .errors import (AlignmentError, DuplicateLabelError, MalformedOperandError,
                     UndefinedLabelError, UnknownInstructionError,
                     UnknownRegisterError)
from .isa import Format, LOAD_MNEMONICS, lookup_instruction, lookup_register
from .lexer import TokenKind, tokenize

MASK32 = 0xFFFFFFFF
INSTRUCTION_SIZE = 4
ORIGIN_DIRECTIVE = ".org"

OP_IMM = 0b0010011
NOP_WORD = 0x00000013  # addi x0, x0, 0

# Pseudo-instruction -> (opcode, funct3, immediate) of the real instruction
PSEUDO_EXPANSIONS = {
    "mv": (OP_IMM, 0b000, 0x000),   # addi rd, rs, 0
    "not": (OP_IMM, 0b100, 0xFFF),  # xori rd, rs, -1
}


@dataclass
class Program:
    """Output of a full assembly run."""
    words: list = field(default_factory=list)
    addresses: list = field(default_factory=list)
    labels: dict = field(default_factory=dict)


# ========================
#  BITS AND IMMEDIATES
# ========================
def pack(value, offset, width):
    """Truncate ``value`` to ``width`` bits and shift it to ``offset``."""
    return (value & ((1 << width) - 1)) << offset


def to_signed32(value):
    value &= MASK32
    return value - (1 << 32) if value & 0x80000000 else value


def parse_immediate(text, lineno=None):
    """
    Parse an immediate: optional sign, then 0x/0X hex digits or decimal digits.

    Returns the value truncated to 32 bits, as a signed integer.

    Raises:
        MalformedOperandError: if no digits follow the sign or prefix.
    """
    body = text
    negative = False
    if body[:1] in ("+", "-"):
        negative = body[0] == "-"
        body = body[1:]
    try:
        if body[:2] in ("0x", "0X"):
            value = int(body[2:], 16)
        else:
            value = int(body, 10)
    except ValueError:
        raise MalformedOperandError(f"malformed immediate {text!r}", lineno) from None
    return to_signed32(-value if negative else value)


# ========================
#  SHARED PASS HELPERS
# ========================
def _origin(tokens, pos, pc):
    """
    Handle the directive at ``tokens[pos]``.

    Only ``.org <imm>`` has an effect; any other directive, or ``.org``
    without an immediate, is ignored. Returns ``(pc, next position)``.
    """
    directive = tokens[pos]
    if directive.text.lower() == ORIGIN_DIRECTIVE and pos + 1 < len(tokens):
        operand = tokens[pos + 1]
        if operand.kind is TokenKind.IMMEDIATE:
            return parse_immediate(operand.text, operand.lineno) & MASK32, pos + 2
    return pc, pos + 1


def _skip_operands(tokens, pos):
    """
    Return the position where the statement after an instruction begins.

    A word directly after a comma is an operand (a branch target), not the
    start of the next instruction.
    """
    while pos < len(tokens):
        kind = tokens[pos].kind
        if kind in (TokenKind.LABEL, TokenKind.DIRECTIVE):
            break
        if kind is TokenKind.MNEMONIC and tokens[pos - 1].kind is not TokenKind.COMMA:
            break
        pos += 1
    return pos


# ========================
#  FIRST PASS
# ========================
def first_pass(tokens):
    """
    Build the symbol table.

    Returns:
        tuple: (labels, instruction_addresses)
            - labels: label name -> address
            - instruction_addresses: address of every instruction, in order
    """
    labels = {}
    instruction_addresses = []
    pc = 0
    pos = 0

    while pos < len(tokens):
        tk = tokens[pos]
        if tk.kind is TokenKind.LABEL:
            name = tk.text
            if name in labels:
                raise DuplicateLabelError(f"duplicate label {name!r}", tk.lineno)
            labels[name] = pc
            pos += 1
        elif tk.kind is TokenKind.MNEMONIC:
            instruction_addresses.append(pc)
            pc = (pc + INSTRUCTION_SIZE) & MASK32
            pos = _skip_operands(tokens, pos + 1)
        elif tk.kind is TokenKind.DIRECTIVE:
            pc, pos = _origin(tokens, pos, pc)
        else:
            pos += 1

    return labels, instruction_addresses


# ========================
#  OPERAND PARSING
# ========================
# Every helper takes the position of the next unread token and returns the
# parsed value together with the position after it.

def _next(tokens, pos):
    if pos >= len(tokens):
        lineno = tokens[-1].lineno if tokens else None
        raise MalformedOperandError("unexpected end of tokens", lineno)
    return tokens[pos], pos + 1


def _punct(tokens, pos):
    # Separators are consumed without checking which one they are
    _, pos = _next(tokens, pos)
    return pos


def _register(tokens, pos):
    tk, pos = _next(tokens, pos)
    if tk.kind is TokenKind.REGISTER:
        return lookup_register(tk.text), pos
    if tk.kind is TokenKind.MNEMONIC:
        raise UnknownRegisterError(f"unknown register {tk.text!r}", tk.lineno)
    raise MalformedOperandError(f"expected a register, found {tk.text!r}", tk.lineno)


def _immediate(tokens, pos):
    tk, pos = _next(tokens, pos)
    if tk.kind is not TokenKind.IMMEDIATE:
        raise MalformedOperandError(f"expected an immediate, found {tk.text!r}", tk.lineno)
    return parse_immediate(tk.text, tk.lineno), pos


def _memory(tokens, pos):
    """``imm(rs1)`` -> (imm, rs1, pos)"""
    imm, pos = _immediate(tokens, pos)
    pos = _punct(tokens, pos)
    rs1, pos = _register(tokens, pos)
    pos = _punct(tokens, pos)
    return imm, rs1, pos


def _label_offset(tokens, pos, labels, pc):
    """Resolve a label operand to its even, PC-relative offset."""
    tk, pos = _next(tokens, pos)
    if tk.kind not in (TokenKind.MNEMONIC, TokenKind.REGISTER):
        raise MalformedOperandError(f"expected a label, found {tk.text!r}", tk.lineno)
    name = tk.text
    if name not in labels:
        raise UndefinedLabelError(f"undefined label {name!r}", tk.lineno)
    offset = to_signed32(labels[name] - pc)
    if offset % 2 != 0:
        raise AlignmentError(f"offset {offset} to {name!r} is not a multiple of 2", tk.lineno)
    return offset, pos


# ========================
#  ENCODERS PER FORMAT
# ========================
def _i_word(opcode, funct3, rd, rs1, imm):
    # imm[11:0] | rs1 | funct3 | rd | opcode
    return (pack(opcode, 0, 7) | pack(rd, 7, 5) | pack(funct3, 12, 3)
            | pack(rs1, 15, 5) | pack(imm, 20, 12))


def _encode_r(mnemonic, info, tokens, pos, labels, pc):
    # funct7 | rs2 | rs1 | funct3 | rd | opcode
    rd, pos = _register(tokens, pos)
    pos = _punct(tokens, pos)
    rs1, pos = _register(tokens, pos)
    pos = _punct(tokens, pos)
    rs2, pos = _register(tokens, pos)
    word = (pack(info.opcode, 0, 7) | pack(rd, 7, 5) | pack(info.funct3, 12, 3)
            | pack(rs1, 15, 5) | pack(rs2, 20, 5) | pack(info.funct7, 25, 7))
    return word, pos


def _encode_i(mnemonic, info, tokens, pos, labels, pc):
    rd, pos = _register(tokens, pos)
    pos = _punct(tokens, pos)
    if mnemonic in LOAD_MNEMONICS:
        imm, rs1, pos = _memory(tokens, pos)        # lw rd, imm(rs1)
    else:
        rs1, pos = _register(tokens, pos)           # addi rd, rs1, imm
        pos = _punct(tokens, pos)
        imm, pos = _immediate(tokens, pos)
    if info.funct7:
        # srai: funct7 sits in imm[11:5] above the 5-bit shift amount
        imm = pack(info.funct7, 5, 7) | pack(imm, 0, 5)
    return _i_word(info.opcode, info.funct3, rd, rs1, imm), pos


def _encode_s(mnemonic, info, tokens, pos, labels, pc):
    # imm[11:5] | rs2 | rs1 | funct3 | imm[4:0] | opcode
    rs2, pos = _register(tokens, pos)
    pos = _punct(tokens, pos)
    imm, rs1, pos = _memory(tokens, pos)
    word = (pack(info.opcode, 0, 7) | pack(imm, 7, 5) | pack(info.funct3, 12, 3)
            | pack(rs1, 15, 5) | pack(rs2, 20, 5) | pack(imm >> 5, 25, 7))
    return word, pos


def _encode_b(mnemonic, info, tokens, pos, labels, pc):
    # imm[12|10:5] | rs2 | rs1 | funct3 | imm[4:1|11] | opcode
    rs1, pos = _register(tokens, pos)
    pos = _punct(tokens, pos)
    rs2, pos = _register(tokens, pos)
    pos = _punct(tokens, pos)
    offset, pos = _label_offset(tokens, pos, labels, pc)
    word = (pack(info.opcode, 0, 7) | pack(offset >> 11, 7, 1) | pack(offset >> 1, 8, 4)
            | pack(info.funct3, 12, 3) | pack(rs1, 15, 5) | pack(rs2, 20, 5)
            | pack(offset >> 5, 25, 6) | pack(offset >> 12, 31, 1))
    return word, pos


def _encode_u(mnemonic, info, tokens, pos, labels, pc):
    # The immediate is already the upper 20 bits; it is not shifted here
    rd, pos = _register(tokens, pos)
    pos = _punct(tokens, pos)
    imm, pos = _immediate(tokens, pos)
    word = pack(info.opcode, 0, 7) | pack(rd, 7, 5) | pack(imm, 12, 20)
    return word, pos


def _encode_j(mnemonic, info, tokens, pos, labels, pc):
    # imm[20|10:1|11|19:12] | rd | opcode
    rd, pos = _register(tokens, pos)
    pos = _punct(tokens, pos)
    offset, pos = _label_offset(tokens, pos, labels, pc)
    word = (pack(info.opcode, 0, 7) | pack(rd, 7, 5) | pack(offset >> 12, 12, 8)
            | pack(offset >> 11, 20, 1) | pack(offset >> 1, 21, 10) | pack(offset >> 20, 31, 1))
    return word, pos


def _encode_pseudo(mnemonic, info, tokens, pos, labels, pc):
    """
    Pseudo-instructions have fixed bit patterns; the table entry is only
    used to route them here.
    """
    if mnemonic == "nop":
        return NOP_WORD, pos
    rd, pos = _register(tokens, pos)
    pos = _punct(tokens, pos)
    rs, pos = _register(tokens, pos)
    opcode, funct3, imm = PSEUDO_EXPANSIONS[mnemonic]
    return _i_word(opcode, funct3, rd, rs, imm), pos


ENCODERS = {
    Format.R: _encode_r,
    Format.I: _encode_i,
    Format.S: _encode_s,
    Format.B: _encode_b,
    Format.U: _encode_u,
    Format.J: _encode_j,
    Format.PSEUDO: _encode_pseudo,
}


# ========================
#  SECOND PASS
# ========================
def second_pass(tokens, labels):
    """
    Encode every instruction into a 32-bit word.

    Args:
        tokens (list): token list produced by ``tokenize``
        labels (dict): symbol table from ``first_pass``

    Returns:
        tuple: (machine_code, addresses), one entry per instruction
    """
    machine_code = []
    addresses = []
    pc = 0
    pos = 0

    while pos < len(tokens):
        tk = tokens[pos]
        if tk.kind is TokenKind.DIRECTIVE:
            pc, pos = _origin(tokens, pos, pc)
            continue
        if tk.kind is not TokenKind.MNEMONIC:
            # labels were bound in the first pass
            pos += 1
            continue

        mnemonic = tk.text.lower()
        info = lookup_instruction(mnemonic)
        if info is None:
            raise UnknownInstructionError(f"unknown instruction {tk.text!r}", tk.lineno)

        # Both passes must agree on where this statement ends
        end = _skip_operands(tokens, pos + 1)
        word, pos = ENCODERS[info.format](mnemonic, info, tokens, pos + 1, labels, pc)
        if pos != end:
            extra = tokens[min(pos, end)]
            raise MalformedOperandError(
                f"unexpected operand {extra.text!r} after {tk.text!r}", extra.lineno)
        machine_code.append(word & MASK32)
        addresses.append(pc)
        pc = (pc + INSTRUCTION_SIZE) & MASK32

    return machine_code, addresses


def assemble(source):
    """Lex, resolve and encode ``source``. Returns a Program."""
    tokens = tokenize(source)
    labels, _ = first_pass(tokens)
    machine_code, addresses = second_pass(tokens, labels)
    return Program(machine_code, addresses, labels)
