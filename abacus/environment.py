from typing import Any, Dict, Optional
from abacus.errors import UndefinedVariable


class Environment:
    """One scope in a parent-linked chain mapping names to values."""
    def __init__(self, parent: Optional['Environment'] = None):
        self.parent = parent
        self.values: Dict[str, Any] = {}

    def define(self, name: str, value: Any):
        # always binds in this scope, shadowing any outer binding
        self.values[name] = value

    def get(self, name: str) -> Any:
        env = self.resolve(name)
        if env is None:
            raise UndefinedVariable(f'Undefined variable: {name}')
        return env.values[name]

    def assign(self, name: str, value: Any):
        env = self.resolve(name)
        if env is None:
            raise UndefinedVariable(f'Undefined variable: {name}')
        env.values[name] = value

    def resolve(self, name: str) -> Optional['Environment']:
        """Return the innermost scope binding `name`, or None."""
        env = self
        while env is not None:
            if name in env.values:
                return env
            env = env.parent
        return None

    def __contains__(self, name: str) -> bool:
        return self.resolve(name) is not None

    def depth(self) -> int:
        n = 0
        env = self.parent
        while env is not None:
            n += 1
            env = env.parent
        return n
