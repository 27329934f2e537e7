# ÇizgiKod language package
# This package provides a tokenizer and a single-pass interpreter for the ÇizgiKod language.
from .interpreter import run_program, run_file, Interpreter, RunResult
from .lexer import tokenize, tokenize_line, tokenize_lines, Token, TokenType
from .types import Value, ValueType, ErrorVal
from .errors import CizgiError

__all__ = [
    'run_program',
    'run_file',
    'Interpreter',
    'RunResult',
    'tokenize',
    'tokenize_line',
    'tokenize_lines',
    'Token',
    'TokenType',
    'Value',
    'ValueType',
    'ErrorVal',
    'CizgiError',
]
