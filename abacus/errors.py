from typing import Any, Optional


class LexError(Exception):
    """A problem found while scanning. Reported, never raised out of `scan`."""
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ParseError(Exception):
    """Malformed syntax. Aborts the whole parse."""
    def __init__(self, message: str, token: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.token = token

    @property
    def lexeme(self) -> str:
        return self.token.lexeme if self.token is not None else ''


class ExecutionError(Exception):
    """Runtime failure of the statement currently executing."""
    kind = 'RuntimeError'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TypeMismatch(ExecutionError):
    kind = 'TypeMismatch'


class UndefinedVariable(ExecutionError):
    kind = 'UndefinedVariable'


class IndexOutOfBounds(ExecutionError):
    kind = 'IndexOutOfBounds'


class KeyNotFound(ExecutionError):
    kind = 'KeyNotFound'


class ArityMismatch(ExecutionError):
    kind = 'ArityMismatch'


class NotCallable(ExecutionError):
    kind = 'NotCallable'


class NotIndexable(ExecutionError):
    kind = 'NotIndexable'


class ReturnSignal:
    """Outcome of executing a `return`: carries the value up to the nearest call."""
    __slots__ = ('value',)

    def __init__(self, value: Any):
        self.value = value

    def __repr__(self) -> str:
        return f"ReturnSignal({self.value!r})"
