"""Interpreter for the ÇizgiKod language.

There is no separate parse tree: the interpreter walks the token sequence
with a cursor and executes each construct as soon as it has recognised it.
Statements are dispatched by recursive descent and expressions are
evaluated by precedence climbing. Blocks that must not run (the untaken
branch of an `if`, the rest of a block after `break`) are skipped by
scanning for the matching closing delimiter, and loops rewind the cursor to
bookmarked indices instead of re-reading the source.

Every run gets its own `RunContext` holding the environment, the cursor and
the return/break/continue flags, so separate runs never share state.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple
import builtins

from .types import (
    ErrorVal, OperationError, Value, ValueType,
    apply_binary_op, apply_logical_op, compare_values, convert_input, to_string,
)
from .lexer import KEYWORDS, LITERAL_KINDS, Token, TokenType, tokenize
from .errors import CizgiError, syntax_error
from .environment import Environment


ReadLine = Callable[[], str]
WriteLine = Callable[[str], None]

SPELLINGS: Dict[TokenType, str] = {kind: spelling for spelling, kind in KEYWORDS.items()}

ARITHMETIC_OPERATORS = {
    TokenType.PLUS: '+',
    TokenType.MINUS: '-',
}

MULTIPLICATIVE_OPERATORS = {
    TokenType.DIVIDE: '/',
    TokenType.MOD: '%',
    TokenType.POWER: '^',
}

COMPARISON_OPERATORS = {
    TokenType.EQUAL: '==',
    TokenType.NOT_EQUAL: '!=',
    TokenType.LESS_THAN: '<',
    TokenType.GREATER_THAN: '>',
    TokenType.LESS_EQUAL: '<=',
    TokenType.GREATER_EQUAL: '>=',
}

LOGICAL_OPERATORS = {
    TokenType.AND: 'and',
    TokenType.AND_AND: 'and',
    TokenType.OR: 'or',
    TokenType.OR_OR: 'or',
}

COMPOUND_ASSIGNMENTS = {
    TokenType.PLUS_ASSIGN: '+',
    TokenType.MINUS_ASSIGN: '-',
}

ASSIGNMENT_KINDS = (TokenType.ASSIGN,) + tuple(COMPOUND_ASSIGNMENTS)


def default_read_line() -> str:
    try:
        return builtins.input()
    except EOFError:
        return ''


def default_write_line(text: str) -> None:
    print(text)


@dataclass
class RunContext:
    """Mutable state of a single run: bindings, cursor and control flags."""
    tokens: Tuple[Token, ...]
    env: Environment
    pos: int = 0
    returned: bool = False
    broke: bool = False
    continued: bool = False
    return_value: Optional[Value] = None

    @property
    def interrupted(self) -> bool:
        return self.returned or self.broke or self.continued


@dataclass
class RunResult:
    """Outcome of one run.

    `ok` is False when the run was aborted; `error` then describes why.
    `variables` is a snapshot of the environment at the moment the run
    stopped, successful or not.
    """
    ok: bool
    error: Optional[ErrorVal] = None
    return_value: Optional[Value] = None
    variables: Dict[str, Value] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)


class Interpreter:
    """Executes ÇizgiKod token sequences.

    `read_line` and `write_line` are the only ways a program talks to the
    outside world; they default to the console. With a positive
    `debug_level` a trace of the run is written to `debug_file` (or to
    stderr when `debug_file` is None).
    """
    def __init__(self, read_line: Optional[ReadLine] = None, write_line: Optional[WriteLine] = None,
                 debug_level: int = 0, debug_file: Optional[str] = 'debug.txt', strict_types: bool = False):
        self.read_line = read_line or default_read_line
        self.write_line = write_line or default_write_line
        self.debug_level = debug_level
        self.strict_types = strict_types
        self.debug_fp = open(debug_file, 'w', encoding='utf-8') if debug_level > 0 and debug_file else None

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg, file=sys.stderr)

    def warn(self, msg: str):
        self.debug(f"Warning: {msg}")

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    def __enter__(self) -> 'Interpreter':
        return self

    def __exit__(self, *exc_info):
        self.close()

    # Public API
    def run(self, tokens: Sequence[Token]) -> RunResult:
        ctx = RunContext(tuple(tokens), Environment(self.strict_types, on_warning=self.warn))
        self.debug(f"Program started ({len(ctx.tokens)} tokens).")
        if self.debug_level >= 4:
            for token in ctx.tokens:
                self.debug(f"  Next token: {token}")
        try:
            self.execute_program(ctx)
        except RecursionError:
            err = self.unexpected(self.peek(ctx), "expression nested too deeply").err
            self.debug(f"Program failed: {err}")
            return RunResult(False, err, None, dict(ctx.env.values), list(ctx.env.warnings))
        except CizgiError as ex:
            self.debug(f"Program failed: {ex.err}")
            return RunResult(False, ex.err, None, dict(ctx.env.values), list(ctx.env.warnings))
        self.debug("Program finished successfully.")
        return RunResult(True, None, ctx.return_value, dict(ctx.env.values), list(ctx.env.warnings))

    def run_source(self, source: str) -> RunResult:
        return self.run(tokenize(source))

    ###########################################################################
    # Cursor helpers
    ###########################################################################

    def peek(self, ctx: RunContext, offset: int = 0) -> Optional[Token]:
        index = ctx.pos + offset
        if index < len(ctx.tokens):
            return ctx.tokens[index]
        return None

    def check(self, ctx: RunContext, *kinds: TokenType) -> bool:
        token = self.peek(ctx)
        return token is not None and token.kind in kinds

    def advance(self, ctx: RunContext) -> Token:
        token = self.peek(ctx)
        if token is None:
            raise syntax_error("unexpected end of input", None, None)
        ctx.pos += 1
        return token

    def expect(self, ctx: RunContext, kind: TokenType, context: str) -> Token:
        token = self.peek(ctx)
        if token is None or token.kind is not kind:
            raise self.unexpected(token, f"expected '{SPELLINGS.get(kind, kind.value)}' {context}")
        ctx.pos += 1
        return token

    def unexpected(self, token: Optional[Token], message: str) -> CizgiError:
        if token is None:
            return syntax_error(message, None, None)
        if token.line:
            message = f"{message} (line {token.line})"
        return syntax_error(message, token.lexeme, token.kind.value)

    def find_close(self, ctx: RunContext, start: int, open_kind: TokenType, close_kind: TokenType,
                   what: str) -> int:
        """Return the index just past the closer matching an already consumed opener.

        Scanning begins at `start` with a balance of one; the cursor is not
        moved.
        """
        balance = 1
        index = start
        while index < len(ctx.tokens):
            kind = ctx.tokens[index].kind
            if kind is open_kind:
                balance += 1
            elif kind is close_kind:
                balance -= 1
            index += 1
            if balance == 0:
                return index
        last = ctx.tokens[start - 1] if 0 < start <= len(ctx.tokens) else None
        raise self.unexpected(last, f"unmatched '{SPELLINGS[open_kind]}' in {what}")

    def skip_block(self, ctx: RunContext):
        ctx.pos = self.find_close(ctx, ctx.pos, TokenType.LBRACE, TokenType.RBRACE, 'block')

    ###########################################################################
    # Statements
    ###########################################################################

    def execute_program(self, ctx: RunContext):
        # break/continue outside a loop stop the program like return does
        while ctx.pos < len(ctx.tokens) and not ctx.interrupted:
            self.execute_statement(ctx)

    def execute_block(self, ctx: RunContext):
        """Run the statements of a block whose opener has been consumed.

        The closing delimiter is consumed as well. When a return, break or
        continue fires inside, the remaining statements are skipped.
        """
        while True:
            token = self.peek(ctx)
            if token is None:
                raise syntax_error(f"expected '{SPELLINGS[TokenType.RBRACE]}' to close block", None, None)
            if token.kind is TokenType.RBRACE:
                ctx.pos += 1
                return
            if ctx.interrupted:
                self.skip_block(ctx)
                return
            self.execute_statement(ctx)

    def execute_statement(self, ctx: RunContext):
        self.expect(ctx, TokenType.START_LINE, 'at start of statement')
        token = self.peek(ctx)
        kind = token.kind if token is not None else None
        if kind is TokenType.PRINT:
            self.execute_print(ctx)
        elif kind is TokenType.VAR:
            self.execute_declaration(ctx)
        elif kind is TokenType.IDENTIFIER:
            self.execute_assignment(ctx)
        elif kind is TokenType.IF:
            self.execute_if(ctx)
        elif kind is TokenType.WHILE:
            self.execute_while(ctx)
        elif kind is TokenType.INPUT:
            self.execute_input(ctx)
        elif kind is TokenType.RETURN:
            self.execute_return(ctx)
        elif kind is TokenType.BREAK:
            self.advance(ctx)
            ctx.broke = True
            if self.debug_level >= 2:
                self.debug("break")
        elif kind is TokenType.CONTINUE:
            self.advance(ctx)
            ctx.continued = True
            if self.debug_level >= 2:
                self.debug("continue")
        else:
            raise self.unexpected(token, "invalid statement")
        self.expect(ctx, TokenType.START_LINE, 'at end of statement')

    def execute_print(self, ctx: RunContext):
        self.advance(ctx)
        self.expect(ctx, TokenType.LPAREN, "after 'tospik'")
        value = self.evaluate(ctx)
        self.expect(ctx, TokenType.RPAREN, 'after print expression')
        self.write_line(to_string(value))

    def execute_declaration(self, ctx: RunContext):
        self.advance(ctx)
        name = self.expect(ctx, TokenType.IDENTIFIER, "after 'keloğlan'").lexeme
        self.expect(ctx, TokenType.ASSIGN, f'after variable name {name} in declaration')
        value = self.evaluate(ctx)
        ctx.env.declare(name, value)
        if self.debug_level >= 2:
            self.debug(f"declare {name} = {value!r}")

    def execute_assignment(self, ctx: RunContext):
        name = self.peek(ctx).lexeme
        op = self.peek(ctx, 1)
        if op is None or op.kind not in ASSIGNMENT_KINDS:
            # not an assignment: evaluate for effect and discard
            self.evaluate(ctx)
            return
        if name not in ctx.env:
            raise CizgiError(ErrorVal('NameError', f'variable {name} not declared before assignment'))
        ctx.pos += 2
        value = self.evaluate(ctx)
        if op.kind in COMPOUND_ASSIGNMENTS:
            value = self.operate(apply_binary_op, COMPOUND_ASSIGNMENTS[op.kind], ctx.env.lookup(name), value)
        ctx.env.assign(name, value)
        if self.debug_level >= 2:
            self.debug(f"assign {name} = {value!r}")

    def execute_input(self, ctx: RunContext):
        self.advance(ctx)
        self.expect(ctx, TokenType.LPAREN, "after 'marsupilami'")
        name = self.expect(ctx, TokenType.IDENTIFIER, 'for input variable').lexeme
        self.expect(ctx, TokenType.RPAREN, 'after input variable')
        if name not in ctx.env:
            raise CizgiError(ErrorVal('NameError', f'variable {name} not declared for input'))
        target = ctx.env.lookup(name).type
        text = self.read_line()
        try:
            value = convert_input(target, text)
        except ValueError as e:
            raise CizgiError(ErrorVal('ValueError', f'input for variable {name}: {e}'))
        except TypeError as e:
            raise CizgiError(ErrorVal('TypeError', f'input for variable {name}: {e}'))
        ctx.env.assign(name, value)
        if self.debug_level >= 2:
            self.debug(f"input {name} = {value!r}")

    def execute_return(self, ctx: RunContext):
        self.advance(ctx)
        ctx.return_value = self.evaluate(ctx)
        ctx.returned = True
        if self.debug_level >= 2:
            self.debug(f"return {ctx.return_value!r}")

    def execute_if(self, ctx: RunContext):
        self.advance(ctx)
        self.expect(ctx, TokenType.LPAREN, "after 'döfenşimos'")
        cond = self.evaluate(ctx)
        self.expect(ctx, TokenType.RPAREN, "after 'if' condition")
        if cond.type is not ValueType.BOOLEAN:
            raise CizgiError(ErrorVal('TypeError', f'if condition must evaluate to BOOLEAN, got {cond.type}'))
        self.expect(ctx, TokenType.LBRACE, "to open 'if' block")
        if self.debug_level >= 3:
            self.debug(f"if condition {to_string(cond)}")
        if cond.data:
            self.execute_block(ctx)
        else:
            self.skip_block(ctx)
        if self.check(ctx, TokenType.ELSE):
            self.advance(ctx)
            self.expect(ctx, TokenType.LBRACE, "to open 'else' block")
            if cond.data:
                self.skip_block(ctx)
            else:
                self.execute_block(ctx)
        self.expect(ctx, TokenType.BREAK, "after 'if'/'else' structure")

    def execute_while(self, ctx: RunContext):
        self.advance(ctx)
        self.expect(ctx, TokenType.LPAREN, "after 'pepe'")
        cond_start = ctx.pos
        ctx.pos = self.find_close(ctx, cond_start, TokenType.LPAREN, TokenType.RPAREN, "'while' condition")
        self.expect(ctx, TokenType.LBRACE, "to open 'while' block")
        body_start = ctx.pos
        body_end = self.find_close(ctx, body_start, TokenType.LBRACE, TokenType.RBRACE, "'while' block")
        iterations = 0
        while True:
            ctx.broke = False
            ctx.continued = False
            ctx.pos = cond_start
            cond = self.evaluate(ctx)
            self.expect(ctx, TokenType.RPAREN, "after 'while' condition")
            if cond.type is not ValueType.BOOLEAN:
                self.warn(f"while condition evaluated to {cond.type}; loop stopped")
                break
            if not cond.data:
                break
            iterations += 1
            ctx.pos = body_start
            self.execute_block(ctx)
            if ctx.broke or ctx.returned:
                break
        if self.debug_level >= 3:
            self.debug(f"while loop ran {iterations} iteration(s)")
        ctx.broke = False
        ctx.continued = False
        ctx.pos = body_end
        self.expect(ctx, TokenType.BREAK, "after 'while' structure")

    ###########################################################################
    # Expressions
    ###########################################################################

    def operate(self, fn: Callable[[str, Value, Value], Value], op: str, left: Value, right: Value) -> Value:
        try:
            return fn(op, left, right)
        except OperationError as e:
            raise CizgiError(ErrorVal(e.name, e.message))

    def evaluate(self, ctx: RunContext) -> Value:
        """Evaluate the expression at the cursor, leaving the cursor after it."""
        left = self.evaluate_comparison(ctx)
        while self.check(ctx, *LOGICAL_OPERATORS):
            op = LOGICAL_OPERATORS[self.advance(ctx).kind]
            # no short-circuit: the right operand is always evaluated
            right = self.evaluate_comparison(ctx)
            left = self.operate(apply_logical_op, op, left, right)
        return left

    def evaluate_comparison(self, ctx: RunContext) -> Value:
        left = self.evaluate_additive(ctx)
        if self.check(ctx, *COMPARISON_OPERATORS):
            op = COMPARISON_OPERATORS[self.advance(ctx).kind]
            right = self.evaluate_additive(ctx)
            return self.operate(compare_values, op, left, right)
        return left

    def evaluate_additive(self, ctx: RunContext) -> Value:
        left = self.evaluate_multiplicative(ctx)
        while self.check(ctx, *ARITHMETIC_OPERATORS):
            op = ARITHMETIC_OPERATORS[self.advance(ctx).kind]
            right = self.evaluate_multiplicative(ctx)
            left = self.operate(apply_binary_op, op, left, right)
        return left

    def evaluate_multiplicative(self, ctx: RunContext) -> Value:
        left = self.evaluate_primary(ctx)
        while self.check(ctx, *MULTIPLICATIVE_OPERATORS):
            op = MULTIPLICATIVE_OPERATORS[self.advance(ctx).kind]
            right = self.evaluate_primary(ctx)
            left = self.operate(apply_binary_op, op, left, right)
        return left

    def evaluate_primary(self, ctx: RunContext) -> Value:
        token = self.peek(ctx)
        if token is None:
            raise syntax_error("unexpected end of input in expression", None, None)
        if token.kind in LITERAL_KINDS:
            ctx.pos += 1
            return token.literal
        if token.kind is TokenType.IDENTIFIER:
            ctx.pos += 1
            return ctx.env.lookup(token.lexeme)
        if token.kind is TokenType.LPAREN:
            ctx.pos += 1
            value = self.evaluate(ctx)
            self.expect(ctx, TokenType.RPAREN, 'to close parenthesized expression')
            return value
        raise self.unexpected(token, "unexpected token in expression")


def run_program(source: str, **options) -> RunResult:
    """Convenience function to tokenize and run a ÇizgiKod program from source string."""
    with Interpreter(**options) as interpreter:
        return interpreter.run_source(source)


def run_file(file_path: str, **options) -> RunResult:
    """Tokenize and run a ÇizgiKod file."""
    with open(file_path, 'r', encoding='utf-8') as f:
        source = f.read()
    return run_program(source, **options)
