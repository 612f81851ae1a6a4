"""Runtime values for the Abacus language.

Every expression evaluates to one of a closed family of values:
`Number`, `Boolean`, `Text`, `Array`, `Dictionary` or a function
(`FunctionValue` for closures declared with `fun`, `BuiltinFunction` for
native functions). Scalars are immutable. Arrays and dictionaries are
reference-like: a variable holds the container object itself, so every
binding that refers to the same container observes mutations made through
`append`, `remove`, `put` and `dict_remove`.

Equality is structural within a variant and always false across variants.
Hashing follows the same rule so any value may serve as a dictionary key.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional
import math

if TYPE_CHECKING:
    from .ast import Block
    from .environment import Environment


@dataclass(frozen=True)
class Number:
    """A double-precision number.

    `literal` keeps the exact source text when the number was written
    directly in the program, so printing it reproduces the source
    formatting. It takes no part in equality or hashing.
    """
    value: float
    literal: Optional[str] = field(default=None, compare=False)


@dataclass(frozen=True)
class Boolean:
    value: bool


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(eq=False)
class Array:
    """A mutable, shared list of values."""
    items: List[Any]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Array):
            return NotImplemented
        return self.items == other.items

    def __hash__(self) -> int:
        return hash(('Array', tuple(self.items)))


@dataclass(eq=False)
class Dictionary:
    """A mutable, shared mapping from values to values, in insertion order."""
    entries: Dict[Any, Any]
    # set once an Array or Dictionary is used as a key; such keys hash by
    # content and go stale when mutated through another binding
    container_keys: bool = field(default=False, init=False, repr=False)

    def __post_init__(self):
        self.container_keys = any(isinstance(k, (Array, Dictionary)) for k in self.entries)

    def rehash(self) -> None:
        """Re-insert every entry under the current hash of its key."""
        if self.container_keys:
            self.entries = {k: v for k, v in self.entries.items()}

    def has_key(self, key: Any) -> bool:
        if key in self.entries:
            return True
        self.rehash()
        return key in self.entries

    def lookup(self, key: Any) -> Any:
        if not self.has_key(key):
            raise KeyError(key)
        return self.entries[key]

    def put(self, key: Any, value: Any) -> None:
        if isinstance(key, (Array, Dictionary)):
            self.container_keys = True
        # an equal key in a stale slot must be overwritten, not duplicated
        self.has_key(key)
        self.entries[key] = value

    def remove(self, key: Any) -> Any:
        if not self.has_key(key):
            raise KeyError(key)
        return self.entries.pop(key)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Dictionary):
            return NotImplemented
        self.rehash()
        other.rehash()
        return self.entries == other.entries

    def __hash__(self) -> int:
        return hash(('Dictionary', frozenset(self.entries.items())))


@dataclass(eq=False)
class FunctionValue:
    """A closure: parameters, body and the environment active at declaration."""
    name: str
    params: List[str]
    body: 'Block'
    closure: 'Environment'

    def __repr__(self) -> str:
        return f"<function {self.name}>"


EMPTY_TEXT = Text('')
TRUE = Boolean(True)
FALSE = Boolean(False)


def format_number(n: float) -> str:
    """Render a computed number: integral values without a trailing `.0`."""
    if math.isnan(n):
        return 'NaN'
    if math.isinf(n):
        return 'Infinity' if n > 0 else '-Infinity'
    if n == math.floor(n):
        return str(int(n))
    return repr(n)


def to_string(value: Any) -> str:
    """Textual form of a value, as written by `print` and `+` concatenation."""
    if isinstance(value, Number):
        if value.literal is not None:
            return value.literal
        return format_number(value.value)
    if isinstance(value, Boolean):
        return 'true' if value.value else 'false'
    if isinstance(value, Text):
        return value.value
    if isinstance(value, Array):
        return '[' + ', '.join(to_string(item) for item in value.items) + ']'
    if isinstance(value, Dictionary):
        entries = ', '.join(f"{to_string(k)}: {to_string(v)}" for k, v in value.entries.items())
        return '{' + entries + '}'
    if isinstance(value, FunctionValue):
        return '<function>'
    # native functions render themselves
    return repr(value)


def type_name(value: Any) -> str:
    """Return the Abacus type name of a runtime value, for error messages."""
    if isinstance(value, Number):
        return 'Number'
    if isinstance(value, Boolean):
        return 'Boolean'
    if isinstance(value, Text):
        return 'Text'
    if isinstance(value, Array):
        return 'Array'
    if isinstance(value, Dictionary):
        return 'Dictionary'
    return 'Function'


def values_equal(a: Any, b: Any) -> bool:
    """Structural equality; values of different variants are never equal."""
    if type(a) is not type(b):
        return False
    return a == b
