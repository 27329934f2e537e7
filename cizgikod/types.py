"""Value model for ÇizgiKod.

This module defines the runtime type system used by the ÇizgiKod
interpreter: the closed set of value types, the immutable `Value` record,
and the per-type rules for arithmetic, comparison, logical operators,
textual rendering and conversion of external input.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional
import math
import re


class ValueType(Enum):
    """The closed set of ÇizgiKod runtime types."""
    INT = 'INT'
    FLOAT = 'FLOAT'
    BOOLEAN = 'BOOLEAN'
    STRING = 'STRING'
    CHAR = 'CHAR'
    VOID = 'VOID'
    UNKNOWN = 'UNKNOWN'

    def __str__(self) -> str:
        return self.value


INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1

NUMERIC_TYPES = (ValueType.INT, ValueType.FLOAT)


@dataclass
class ErrorVal:
    """Describes a failed run.

    `name` is the error category ('SyntaxError' for structural problems,
    'NameError', 'TypeError', 'ZeroDivisionError' or 'ValueError' for
    runtime problems). Structural errors also carry the text and kind of
    the offending token; `kind` is 'EOF' when input ran out.
    """
    name: str
    message: str
    lexeme: Optional[str] = None
    kind: Optional[str] = None

    @property
    def is_structural(self) -> bool:
        return self.name == 'SyntaxError'

    def __str__(self) -> str:
        if self.lexeme is not None:
            return f"{self.name}: {self.message} (token {self.lexeme!r}, kind {self.kind})"
        return f"{self.name}: {self.message}"


@dataclass(frozen=True)
class Value:
    """An immutable tagged ÇizgiKod value.

    The payload always matches the tag: `int` for INT, `float` for FLOAT,
    `bool` for BOOLEAN, `str` for STRING and CHAR (a single code point for
    CHAR) and `None` for VOID and UNKNOWN. Use the constructors below
    rather than building values by hand.
    """
    type: ValueType
    data: Any = None

    def __repr__(self) -> str:
        if self.data is None:
            return f"{self.type.value.title()}()"
        return f"{self.type.value.title()}({self.data!r})"

    def __str__(self) -> str:
        return to_string(self)

    # Convenience constructors
    @staticmethod
    def integer(n: int) -> 'Value':
        return Value(ValueType.INT, wrap_int64(n))

    @staticmethod
    def double(x: float) -> 'Value':
        return Value(ValueType.FLOAT, float(x))

    @staticmethod
    def boolean(b: bool) -> 'Value':
        return Value(ValueType.BOOLEAN, bool(b))

    @staticmethod
    def string(s: str) -> 'Value':
        return Value(ValueType.STRING, s)

    @staticmethod
    def char(c: str) -> 'Value':
        if len(c) != 1:
            raise ValueError(f'char value must be a single character, got {c!r}')
        return Value(ValueType.CHAR, c)

    @staticmethod
    def void() -> 'Value':
        return Value(ValueType.VOID)

    @staticmethod
    def unknown() -> 'Value':
        return Value(ValueType.UNKNOWN)


class OperationError(Exception):
    """Raised by the operator helpers; the interpreter turns it into a run failure.

    `name` follows the ErrorVal categories ('TypeError' or
    'ZeroDivisionError').
    """
    def __init__(self, name: str, message: str):
        super().__init__(message)
        self.name = name
        self.message = message


def wrap_int64(n: int) -> int:
    """Wrap an arbitrary Python int into the signed 64-bit range."""
    n &= (1 << 64) - 1
    return n - (1 << 64) if n > INT64_MAX else n


def type_name(value: Value) -> str:
    return value.type.value


def to_string(value: Value) -> str:
    """Render a value the way `print` shows it."""
    kind = value.type
    if kind is ValueType.INT:
        return str(value.data)
    if kind is ValueType.FLOAT:
        return repr(value.data)
    if kind is ValueType.BOOLEAN:
        return 'true' if value.data else 'false'
    if kind in (ValueType.STRING, ValueType.CHAR):
        return value.data
    return f"null ({kind.value})"


###############################################################################
# Arithmetic
###############################################################################

def _int_div(a: int, b: int) -> int:
    # truncate toward zero
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def _int_mod(a: int, b: int) -> int:
    return a - b * _int_div(a, b)


def _saturate_int64(n: int) -> int:
    return max(INT64_MIN, min(INT64_MAX, n))


def _int_pow(a: int, b: int) -> int:
    # computed then truncated; results outside the 64-bit range saturate
    if b < 0:
        if a == 0:
            return INT64_MAX
        return math.trunc(a ** b)
    if abs(a) <= 1 or b < 64:
        return _saturate_int64(a ** b)
    # |a| >= 2 and b >= 64 is always out of range
    return INT64_MIN if a < 0 and b % 2 else INT64_MAX


def _is_odd_integer(x: float) -> bool:
    return math.isfinite(x) and abs(math.fmod(x, 2.0)) == 1.0


def _float_pow(a: float, b: float) -> float:
    try:
        return math.pow(a, b)
    except OverflowError:
        return -math.inf if a < 0 and _is_odd_integer(b) else math.inf
    except ValueError:
        if a == 0.0:
            # IEEE pow: zero to a negative power is an infinity
            return math.copysign(math.inf, a) if _is_odd_integer(b) else math.inf
        # negative base with a fractional exponent
        return math.nan


def apply_binary_op(op: str, left: Value, right: Value) -> Value:
    """Apply one of the arithmetic operators '+', '-', '/', '%' or '^'."""
    lt, rt = left.type, right.type
    if op == '+' and lt is ValueType.STRING:
        return Value.string(left.data + to_string(right))
    if lt is ValueType.INT and rt is ValueType.INT:
        a, b = left.data, right.data
        if op == '+':
            return Value.integer(a + b)
        if op == '-':
            return Value.integer(a - b)
        if op == '/':
            if b == 0:
                raise OperationError('ZeroDivisionError', 'division by zero')
            return Value.integer(_int_div(a, b))
        if op == '%':
            if b == 0:
                raise OperationError('ZeroDivisionError', 'modulo by zero')
            return Value.integer(_int_mod(a, b))
        if op == '^':
            return Value.integer(_int_pow(a, b))
    elif lt in NUMERIC_TYPES and rt in NUMERIC_TYPES:
        # Float rule; an Int operand is promoted
        a, b = float(left.data), float(right.data)
        if op == '+':
            return Value.double(a + b)
        if op == '-':
            return Value.double(a - b)
        if op == '/':
            if b == 0.0:
                raise OperationError('ZeroDivisionError', 'division by zero')
            return Value.double(a / b)
        if op == '%':
            if b == 0.0:
                raise OperationError('ZeroDivisionError', 'modulo by zero')
            return Value.double(math.fmod(a, b))
        if op == '^':
            return Value.double(_float_pow(a, b))
    raise OperationError('TypeError', f"unsupported operand types for '{op}': {lt} and {rt}")


###############################################################################
# Comparison and logic
###############################################################################

_ORDERING = {
    '==': lambda a, b: a == b,
    '!=': lambda a, b: a != b,
    '<': lambda a, b: a < b,
    '>': lambda a, b: a > b,
    '<=': lambda a, b: a <= b,
    '>=': lambda a, b: a >= b,
}


def compare_values(op: str, left: Value, right: Value) -> Value:
    """Apply a comparison operator and return a Bool value."""
    if op not in _ORDERING:
        raise OperationError('TypeError', f'unknown comparison operator {op}')
    lt, rt = left.type, right.type
    if lt in NUMERIC_TYPES and rt in NUMERIC_TYPES:
        if lt is ValueType.INT and rt is ValueType.INT:
            return Value.boolean(_ORDERING[op](left.data, right.data))
        return Value.boolean(_ORDERING[op](float(left.data), float(right.data)))
    if lt is rt and lt in (ValueType.STRING, ValueType.CHAR):
        # str ordering in Python is by code point
        return Value.boolean(_ORDERING[op](left.data, right.data))
    if lt is rt and lt is ValueType.BOOLEAN and op in ('==', '!='):
        return Value.boolean(_ORDERING[op](left.data, right.data))
    raise OperationError('TypeError', f"unsupported operand types for '{op}': {lt} and {rt}")


def apply_logical_op(op: str, left: Value, right: Value) -> Value:
    """Apply 'and' or 'or'. Both operands are already evaluated."""
    if left.type is not ValueType.BOOLEAN or right.type is not ValueType.BOOLEAN:
        raise OperationError(
            'TypeError', f"logical operator '{op}' expects BOOLEAN operands, got {left.type} and {right.type}")
    if op == 'and':
        return Value.boolean(left.data and right.data)
    if op == 'or':
        return Value.boolean(left.data or right.data)
    raise OperationError('TypeError', f'unknown logical operator {op}')


###############################################################################
# External input
###############################################################################

_INT_INPUT = re.compile(r'[+-]?[0-9]+')

TRUE_SPELLING = 'rik'
FALSE_SPELLING = 'morti'


def convert_input(target: ValueType, text: str) -> Value:
    """Convert a line of user input to a value of the target type.

    Raises ValueError if the text cannot be parsed as the target type and
    TypeError if the target type does not accept input at all.
    """
    if target is ValueType.INT:
        if not _INT_INPUT.fullmatch(text):
            raise ValueError(f'cannot parse int from {text!r}')
        n = int(text)
        if not INT64_MIN <= n <= INT64_MAX:
            raise ValueError(f'integer out of range: {text!r}')
        return Value.integer(n)
    if target is ValueType.FLOAT:
        try:
            return Value.double(float(text))
        except ValueError:
            raise ValueError(f'cannot parse float from {text!r}')
    if target is ValueType.BOOLEAN:
        lowered = text.lower()
        if lowered == TRUE_SPELLING:
            return Value.boolean(True)
        if lowered == FALSE_SPELLING:
            return Value.boolean(False)
        raise ValueError(f"invalid boolean input {text!r}, expected '{TRUE_SPELLING}' or '{FALSE_SPELLING}'")
    if target is ValueType.STRING:
        return Value.string(text)
    if target is ValueType.CHAR:
        if len(text) != 1:
            raise ValueError(f'invalid char input {text!r}, expected a single character')
        return Value.char(text)
    raise TypeError(f'unsupported type for input: {target}')
