import pytest

from rv32asm.isa import (INSTRUCTIONS, LOAD_MNEMONICS, REGISTERS, Format,
                         InstructionDefinition, lookup_instruction,
                         lookup_register)


def test_r_type_definitions():
    assert lookup_instruction("add") == InstructionDefinition(Format.R, 0x33, 0x0, 0x00)
    assert lookup_instruction("sub") == InstructionDefinition(Format.R, 0x33, 0x0, 0x20)
    assert lookup_instruction("sra").funct7 == 0x20


def test_lookup_is_case_insensitive():
    assert lookup_instruction("ADDI") is lookup_instruction("addi")
    assert lookup_register("T0") == lookup_register("t0") == 5


@pytest.mark.parametrize("mnemonic, fmt, opcode, funct3", [
    ("addi", Format.I, 0x13, 0x0),
    ("lw", Format.I, 0x03, 0x2),
    ("jalr", Format.I, 0x67, 0x0),
    ("sw", Format.S, 0x23, 0x2),
    ("bgeu", Format.B, 0x63, 0x7),
    ("lui", Format.U, 0x37, 0x0),
    ("auipc", Format.U, 0x17, 0x0),
    ("jal", Format.J, 0x6F, 0x0),
    ("not", Format.PSEUDO, 0x13, 0x4),
])
def test_definitions(mnemonic, fmt, opcode, funct3):
    info = lookup_instruction(mnemonic)
    assert (info.format, info.opcode, info.funct3) == (fmt, opcode, funct3)


def test_unknown_mnemonic():
    assert lookup_instruction("mul") is None


def test_every_format_is_populated():
    assert {info.format for info in INSTRUCTIONS.values()} == set(Format)


def test_pseudo_instructions():
    pseudo = {m for m, info in INSTRUCTIONS.items() if info.format is Format.PSEUDO}
    assert pseudo == {"nop", "mv", "not"}


def test_loads_are_i_type():
    assert all(lookup_instruction(m).format is Format.I for m in LOAD_MNEMONICS)


def test_registers():
    assert all(lookup_register(f"x{i}") == i for i in range(32))
    assert lookup_register("zero") == 0
    assert lookup_register("s0") == lookup_register("fp") == 8
    assert lookup_register("t6") == 31
    assert lookup_register("x32") is None
    assert set(REGISTERS.values()) == set(range(32))


def test_tables_are_read_only():
    with pytest.raises(TypeError):
        INSTRUCTIONS["mul"] = INSTRUCTIONS["add"]
    with pytest.raises(TypeError):
        REGISTERS["x32"] = 32
