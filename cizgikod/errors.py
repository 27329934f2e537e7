from typing import Optional
from cizgikod.types import ErrorVal


class CizgiError(Exception):
    """Exception type used to abort a ÇizgiKod run."""
    def __init__(self, err: ErrorVal):
        super().__init__(f"CizgiError: {err}")
        self.err = err


def syntax_error(message: str, lexeme: Optional[str], kind: Optional[str]) -> CizgiError:
    """Build a structural error that points at the offending token."""
    return CizgiError(ErrorVal('SyntaxError', message, lexeme if lexeme is not None else 'EOF', kind or 'EOF'))
