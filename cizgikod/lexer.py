"""Tokenizer for the ÇizgiKod language.

Source text is processed one line at a time. Each line is first cut into
chunks: runs of non-whitespace characters, where a double-quoted span is
never split even if it contains whitespace. The chunking is done by a tiny
Lark grammar using the basic lexer. Every chunk is then classified, in
strict priority order, as:

1. an exact entry of the keyword/operator table,
2. a string literal (the whole chunk is a double-quoted span),
3. an integer literal,
4. a float literal (``digits.digits``),
5. an identifier,
6. an unknown token, which only fails if the interpreter reaches it.

Because table lookup is exact, every multi-character operator must appear
as its own whitespace-delimited chunk. Literal tokens carry their parsed
`Value`, so the interpreter never re-reads lexemes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional
import re

from lark import Lark

from .types import Value, INT64_MAX, TRUE_SPELLING, FALSE_SPELLING


class TokenType(Enum):
    # Control structures and statement keywords
    IF = 'IF'
    ELSE = 'ELSE'
    WHILE = 'WHILE'
    FOR = 'FOR'
    RETURN = 'RETURN'
    SWITCH = 'SWITCH'
    CASE = 'CASE'
    BREAK = 'BREAK'
    CONTINUE = 'CONTINUE'
    INPUT = 'INPUT'
    PRINT = 'PRINT'
    VAR = 'VAR'
    # Type names
    INT_TYPE = 'INT_TYPE'
    STRING_TYPE = 'STRING_TYPE'
    BOOLEAN_TYPE = 'BOOLEAN_TYPE'
    FLOAT_TYPE = 'FLOAT_TYPE'
    CHAR_TYPE = 'CHAR_TYPE'
    # Literals
    TRUE = 'TRUE'
    FALSE = 'FALSE'
    NUMBER = 'NUMBER'
    STRING_LITERAL = 'STRING_LITERAL'
    IDENTIFIER = 'IDENTIFIER'
    # Operators
    ASSIGN = 'ASSIGN'
    PLUS_ASSIGN = 'PLUS_ASSIGN'
    MINUS_ASSIGN = 'MINUS_ASSIGN'
    PLUS = 'PLUS'
    MINUS = 'MINUS'
    DIVIDE = 'DIVIDE'
    POWER = 'POWER'
    MOD = 'MOD'
    EQUAL = 'EQUAL'
    NOT_EQUAL = 'NOT_EQUAL'
    LESS_THAN = 'LESS_THAN'
    GREATER_THAN = 'GREATER_THAN'
    LESS_EQUAL = 'LESS_EQUAL'
    GREATER_EQUAL = 'GREATER_EQUAL'
    AND = 'AND'
    AND_AND = 'AND_AND'
    OR = 'OR'
    OR_OR = 'OR_OR'
    # Punctuation and structure
    QUESTION = 'QUESTION'
    EXCLAMATION = 'EXCLAMATION'
    COLON = 'COLON'
    SEMICOLON = 'SEMICOLON'
    LPAREN = 'LPAREN'
    RPAREN = 'RPAREN'
    LBRACE = 'LBRACE'
    RBRACE = 'RBRACE'
    LBRACKET = 'LBRACKET'
    RBRACKET = 'RBRACKET'
    START_LINE = 'START_LINE'
    UNKNOWN = 'UNKNOWN'

    def __str__(self) -> str:
        return self.value


KEYWORDS: Dict[str, TokenType] = {
    # Control structures and keywords
    'döfenşimos': TokenType.IF,
    'ornitorenk': TokenType.ELSE,
    'pepe': TokenType.WHILE,
    'bebe': TokenType.FOR,
    'dede': TokenType.RETURN,
    'huysuz': TokenType.SWITCH,
    'uzun': TokenType.CASE,
    'tontiş': TokenType.BREAK,
    'şapşik': TokenType.CONTINUE,
    'marsupilami': TokenType.INPUT,
    'tospik': TokenType.PRINT,
    # Symbols and operators
    '?': TokenType.QUESTION,
    '!': TokenType.EXCLAMATION,
    '_': TokenType.ASSIGN,
    '._.': TokenType.PLUS,
    ',_,': TokenType.MINUS,
    '\\': TokenType.DIVIDE,
    ':': TokenType.COLON,
    ';': TokenType.SEMICOLON,
    '*_*': TokenType.POWER,
    '%': TokenType.MOD,
    # Declarations, types and boolean literals
    'keloğlan': TokenType.VAR,
    TRUE_SPELLING: TokenType.TRUE,
    FALSE_SPELLING: TokenType.FALSE,
    'mordekay': TokenType.INT_TYPE,
    'rigbi': TokenType.STRING_TYPE,
    'çakbeşlik': TokenType.BOOLEAN_TYPE,
    'finyıs': TokenType.FLOAT_TYPE,
    'förb': TokenType.CHAR_TYPE,
    # Comparison
    '__': TokenType.EQUAL,
    '!_': TokenType.NOT_EQUAL,
    '-:': TokenType.LESS_THAN,
    ':-': TokenType.GREATER_THAN,
    '-:_': TokenType.LESS_EQUAL,
    ':-_': TokenType.GREATER_EQUAL,
    # Logical
    '#': TokenType.AND,
    '##': TokenType.AND_AND,
    '$': TokenType.OR,
    '$$': TokenType.OR_OR,
    # Brackets are mirrored: ')' opens a group and '}' opens a block
    ')': TokenType.LPAREN,
    '(': TokenType.RPAREN,
    '}': TokenType.LBRACE,
    '{': TokenType.RBRACE,
    ']': TokenType.LBRACKET,
    '[': TokenType.RBRACKET,
    '._._': TokenType.PLUS_ASSIGN,
    ',_,_': TokenType.MINUS_ASSIGN,
    # Statement marker
    '^_^': TokenType.START_LINE,
}

LITERAL_KINDS = frozenset({TokenType.NUMBER, TokenType.STRING_LITERAL, TokenType.TRUE, TokenType.FALSE})


@dataclass(frozen=True)
class Token:
    kind: TokenType
    lexeme: str
    literal: Optional[Value] = None
    line: int = 0

    def __post_init__(self):
        if (self.literal is not None) != (self.kind in LITERAL_KINDS):
            raise ValueError(f'token {self.lexeme!r} of kind {self.kind} has inconsistent literal {self.literal!r}')

    def __str__(self) -> str:
        if self.literal is not None:
            return f"Token{{type={self.kind}, lexeme='{self.lexeme}', value={self.literal}}}"
        return f"Token{{type={self.kind}, lexeme='{self.lexeme}'}}"


CHUNK_GRAMMAR = r"""
    start: CHUNK*

    // A chunk is any run of non-space characters; a quoted span may hold
    // spaces. An unterminated quote runs to the end of the line.
    CHUNK: /(?:[^\s"]+|"[^"]*"?)+/

    WS: /\s+/
    %ignore WS
"""


CHUNK_PARSER = Lark(
    CHUNK_GRAMMAR,
    parser='lalr',
    lexer='basic',
)


_STRING_RE = re.compile(r'".*"')
_INT_RE = re.compile(r'[0-9]+')
_FLOAT_RE = re.compile(r'[0-9]+\.[0-9]+')
_LETTERS = 'a-zA-ZçğıöşüÇĞİÖŞÜ_'
_IDENT_RE = re.compile(f'[{_LETTERS}][{_LETTERS}0-9]*')
_INT64_DIGITS = len(str(INT64_MAX))


def split_chunks(line: str) -> List[str]:
    """Split a line on whitespace that lies outside double-quoted spans."""
    tree = CHUNK_PARSER.parse(line)
    return [str(token) for token in tree.children]


def classify(chunk: str, line: int = 0) -> Token:
    """Turn one chunk into a token."""
    kind = KEYWORDS.get(chunk)
    if kind is not None:
        if kind is TokenType.TRUE:
            return Token(kind, chunk, Value.boolean(True), line)
        if kind is TokenType.FALSE:
            return Token(kind, chunk, Value.boolean(False), line)
        return Token(kind, chunk, None, line)
    if _STRING_RE.fullmatch(chunk):
        return Token(TokenType.STRING_LITERAL, chunk, Value.string(chunk[1:-1]), line)
    if _INT_RE.fullmatch(chunk):
        digits = chunk.lstrip('0') or '0'
        if len(digits) > _INT64_DIGITS or int(digits) > INT64_MAX:
            return Token(TokenType.UNKNOWN, chunk, None, line)
        return Token(TokenType.NUMBER, chunk, Value.integer(int(digits)), line)
    if _FLOAT_RE.fullmatch(chunk):
        return Token(TokenType.NUMBER, chunk, Value.double(float(chunk)), line)
    if _IDENT_RE.fullmatch(chunk):
        return Token(TokenType.IDENTIFIER, chunk, None, line)
    return Token(TokenType.UNKNOWN, chunk, None, line)


def tokenize_line(line: str, line_number: int = 0) -> List[Token]:
    """Convert one source line into a list of tokens."""
    return [classify(chunk, line_number) for chunk in split_chunks(line)]


def tokenize_lines(lines: Iterable[str]) -> List[Token]:
    """Tokenize each line and concatenate the results in line order."""
    tokens: List[Token] = []
    for number, line in enumerate(lines, start=1):
        tokens.extend(tokenize_line(line, number))
    return tokens


def tokenize(source: str) -> List[Token]:
    """Convert a whole program text into a flat list of tokens."""
    return tokenize_lines(source.splitlines())
