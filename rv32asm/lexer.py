"""
Lexer for RV32I assembly.

Built on SLY. The SLY token stream is turned into a list of immutable
``Token`` records that keep offsets into the source string instead of their
own copy of the text.
"""
from dataclasses import dataclass, field
from enum import Enum

from sly import Lexer

from .errors import LexicalError
from .isa import lookup_register


class TokenKind(Enum):
    LABEL = "LABEL"
    MNEMONIC = "MNEMONIC"
    REGISTER = "REGISTER"
    IMMEDIATE = "IMMEDIATE"
    COMMA = "COMMA"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    DIRECTIVE = "DIRECTIVE"
    EOL = "EOL"  # part of the model; line breaks are never emitted


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    lineno: int
    start: int
    end: int
    source: str = field(repr=False, compare=False)

    @property
    def text(self):
        return self.source[self.start:self.end]


class RV32ILexer(Lexer):
    """
    Recognizes labels, words, registers, immediates, punctuation and
    directives. Words are classified as REGISTER when they name a register,
    otherwise MNEMONIC; mnemonics are not validated here.
    """
    tokens = {'LABEL', 'MNEMONIC', 'REGISTER', 'IMMEDIATE',
              'COMMA', 'LPAREN', 'RPAREN', 'DIRECTIVE'}
    ignore = ' \t\r\f\v'
    ignore_comment = r'\#.*'

    COMMA = r','
    LPAREN = r'\('
    RPAREN = r'\)'
    DIRECTIVE = r'\.[A-Za-z0-9_]*'

    # Must come before MNEMONIC so "loop:" wins over "loop"
    @_(r'[A-Za-z_][A-Za-z0-9_]*:')  # noqa: F821
    def LABEL(self, t):
        t.value = t.value[:-1]
        return t

    @_(r'[A-Za-z_][A-Za-z0-9_]*')  # noqa: F821
    def MNEMONIC(self, t):
        if lookup_register(t.value) is not None:
            t.type = 'REGISTER'
        return t

    # Sign, then 0x-prefixed hex or plain decimal. A bare sign is still an
    # IMMEDIATE; parsing its value rejects it later.
    IMMEDIATE = r'[+-](?:0[xX][0-9A-Fa-f]*|[0-9]*)|0[xX][0-9A-Fa-f]*|[0-9]+'

    @_(r'\n+')  # noqa: F821
    def ignore_newline(self, t):
        self.lineno += t.value.count('\n')

    def error(self, t):
        raise LexicalError(f"unexpected character {t.value[0]!r}", self.lineno)


def tokenize(source):
    """
    Scan ``source`` once and return the ordered token list.

    Raises:
        LexicalError: on any character no rule accepts.
    """
    tokens = []
    for t in RV32ILexer().tokenize(source):
        # LABEL values already have the colon stripped
        end = t.index + len(t.value)
        tokens.append(Token(TokenKind[t.type], t.lineno, t.index, end, source))
    return tokens
