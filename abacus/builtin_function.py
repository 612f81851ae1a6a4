from dataclasses import dataclass
from typing import Any, Callable, List
from abacus.environment import Environment
from abacus.errors import TypeMismatch
from abacus.values import Array, Dictionary, Number, Text, type_name


@dataclass(eq=False)
class BuiltinFunction:
    name: str
    arity: int
    fn: Callable[[List[Any]], Any]

    def __repr__(self) -> str:
        return f"<builtin {self.name}>"


def std_len(args: List[Any]) -> Any:
    target = args[0]
    if isinstance(target, Array):
        return Number(float(len(target.items)))
    if isinstance(target, Dictionary):
        return Number(float(len(target.entries)))
    if isinstance(target, Text):
        return Number(float(len(target.value)))
    raise TypeMismatch(f'len expects an array, dictionary or text, got {type_name(target)}')


PRELUDE = {
    'len': BuiltinFunction('len', 1, std_len),
}


def populate_global_environment(env: Environment = None) -> Environment:
    """Bind the prelude functions into a (new) global environment."""
    if env is None:
        env = Environment()
    for name, fn in PRELUDE.items():
        env.define(name, fn)
    return env
