"""
Assembler errors.

Every failure aborts the whole run; the command-line driver is the only place
that catches these and turns them into an exit status.
"""


class AssemblerError(Exception):
    """Base class. Carries the source line number when one is known."""

    def __init__(self, message, lineno=None):
        super().__init__(message)
        self.message = message
        self.lineno = lineno

    def __str__(self):
        if self.lineno is None:
            return self.message
        return f"line {self.lineno}: {self.message}"


class LexicalError(AssemblerError):
    """Unrecognized character in the source text."""


class DuplicateLabelError(AssemblerError):
    """A label was bound twice during the first pass."""


class UndefinedLabelError(AssemblerError):
    """A branch or jump names a label missing from the symbol table."""


class UnknownInstructionError(AssemblerError):
    """Mnemonic not present in the instruction table."""


class UnknownRegisterError(AssemblerError):
    """A register operand is not a known name or ABI alias."""


class MalformedOperandError(AssemblerError):
    """Operand of the wrong kind, bad immediate, or tokens ran out."""


class AlignmentError(AssemblerError):
    """Branch or jump offset is odd."""
