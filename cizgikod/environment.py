from typing import Callable, Dict, List, Optional
from cizgikod.errors import CizgiError
from cizgikod.types import ErrorVal, Value, ValueType, NUMERIC_TYPES


class Environment:
    """Flat table of variable bindings for one run.

    There is a single scope: blocks do not introduce new names, and a name
    is either unbound or bound to exactly one value. Assigning a value of a
    different type is only a warning unless `strict_types` is set.
    """
    def __init__(self, strict_types: bool = False, on_warning: Optional[Callable[[str], None]] = None):
        self.values: Dict[str, Value] = {}
        self.strict_types = strict_types
        self.on_warning = on_warning
        self.warnings: List[str] = []

    def __contains__(self, name: str) -> bool:
        return name in self.values

    def lookup(self, name: str) -> Value:
        if name in self.values:
            return self.values[name]
        raise CizgiError(ErrorVal('NameError', f'undefined variable {name}'))

    def declare(self, name: str, value: Value):
        if name in self.values:
            raise CizgiError(ErrorVal('NameError', f'variable {name} already declared'))
        self.values[name] = value

    def assign(self, name: str, value: Value):
        if name not in self.values:
            raise CizgiError(ErrorVal('NameError', f'variable {name} not declared before assignment'))
        current = self.values[name].type
        if not self.compatible(current, value.type):
            message = f'type mismatch for variable {name}: current {current}, assigned {value.type}'
            if self.strict_types:
                raise CizgiError(ErrorVal('TypeError', message))
            self.warnings.append(message)
            if self.on_warning:
                self.on_warning(message)
        self.values[name] = value

    @staticmethod
    def compatible(current: ValueType, new: ValueType) -> bool:
        # UNKNOWN on either side is never reported
        if current is new or ValueType.UNKNOWN in (current, new):
            return True
        return current in NUMERIC_TYPES and new in NUMERIC_TYPES
