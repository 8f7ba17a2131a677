"""Two-pass assembler for the RV32I base integer instruction set."""
from .assembler import Program, assemble, first_pass, parse_immediate, second_pass
from .errors import (AlignmentError, AssemblerError, DuplicateLabelError,
                     LexicalError, MalformedOperandError, UndefinedLabelError,
                     UnknownInstructionError, UnknownRegisterError)
from .hexfile import write_hex
from .lexer import Token, TokenKind, tokenize

__version__ = "0.1.0"
