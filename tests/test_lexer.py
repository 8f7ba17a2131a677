import pytest

from rv32asm.errors import LexicalError
from rv32asm.lexer import TokenKind, tokenize


def kinds(source):
    return [t.kind for t in tokenize(source)]


def texts(source):
    return [t.text for t in tokenize(source)]


def test_instruction_with_label_and_comment():
    tokens = tokenize("loop: addi x1, x1, 1 # bump\n  jal x0, loop")
    assert [t.kind for t in tokens] == [
        TokenKind.LABEL, TokenKind.MNEMONIC, TokenKind.REGISTER, TokenKind.COMMA,
        TokenKind.REGISTER, TokenKind.COMMA, TokenKind.IMMEDIATE,
        TokenKind.MNEMONIC, TokenKind.REGISTER, TokenKind.COMMA, TokenKind.MNEMONIC,
    ]
    assert [t.text for t in tokens] == [
        "loop", "addi", "x1", ",", "x1", ",", "1", "jal", "x0", ",", "loop"]
    assert [t.lineno for t in tokens] == [1] * 7 + [2] * 4


def test_label_text_excludes_colon():
    label = tokenize("start: nop")[0]
    assert label.kind is TokenKind.LABEL
    assert (label.start, label.end) == (0, 5)
    assert label.text == "start"


def test_tokens_are_offsets_into_source():
    source = "  sw x2, 4(x1)"
    tokens = tokenize(source)
    assert all(source[t.start:t.end] == t.text for t in tokens)
    assert kinds(source) == [
        TokenKind.MNEMONIC, TokenKind.REGISTER, TokenKind.COMMA, TokenKind.IMMEDIATE,
        TokenKind.LPAREN, TokenKind.REGISTER, TokenKind.RPAREN,
    ]


def test_tokens_are_immutable():
    token = tokenize("nop")[0]
    with pytest.raises(AttributeError):
        token.lineno = 5


def test_immediates():
    assert texts("-0x1F +7 42 0X10 -3") == ["-0x1F", "+7", "42", "0X10", "-3"]
    assert set(kinds("-0x1F +7 42 0X10 -3")) == {TokenKind.IMMEDIATE}


def test_number_followed_by_word_splits():
    assert kinds("10abc") == [TokenKind.IMMEDIATE, TokenKind.MNEMONIC]


def test_directive_keeps_dot():
    tokens = tokenize(".org 0x100\n.text")
    assert [(t.kind, t.text) for t in tokens] == [
        (TokenKind.DIRECTIVE, ".org"),
        (TokenKind.IMMEDIATE, "0x100"),
        (TokenKind.DIRECTIVE, ".text"),
    ]


@pytest.mark.parametrize("word", ["x0", "x31", "zero", "ZERO", "Sp", "fp", "s11", "a7"])
def test_register_names_and_aliases(word):
    assert kinds(word) == [TokenKind.REGISTER]


@pytest.mark.parametrize("word", ["x32", "addi", "loop", "_tmp", "s12"])
def test_other_words_are_mnemonics(word):
    assert kinds(word) == [TokenKind.MNEMONIC]


def test_line_numbers_count_blank_and_comment_lines():
    tokens = tokenize("# header\n\nnop\n\n   # note\nnop\r\n\tnop")
    assert [t.lineno for t in tokens] == [3, 6, 7]


def test_no_end_of_line_tokens():
    assert TokenKind.EOL not in kinds("nop\nnop\n")


def test_empty_source():
    assert tokenize("") == []
    assert tokenize("   # only a comment\n") == []


def test_illegal_character_reports_line():
    with pytest.raises(LexicalError) as excinfo:
        tokenize("nop\nnop\n  addi x1, x1, @")
    assert excinfo.value.lineno == 3
    assert "'@'" in str(excinfo.value)
    assert str(excinfo.value).startswith("line 3:")


def test_colon_after_space_is_illegal():
    with pytest.raises(LexicalError):
        tokenize("loop : nop")
