"""
Runtime environments for the Lox interpreter.

An ``Environment`` is one frame of variable bindings. Frames link to their
enclosing frame, innermost first, mirroring the scopes the resolver saw.
Frames are shared, never copied: a closure keeps its defining frame alive,
and two closures over the same frame see each other's writes.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..tokens import Token
from ..errors import error_undefined_variable


@dataclass(eq=False)
class Environment:
    """
    A single frame of bindings.

    ``get``/``assign`` search by name up the chain and are only used for
    globals. Locals go through ``get_at``/``assign_at`` with the distance the
    resolver computed.
    """
    enclosing: Optional["Environment"] = None
    values: Dict[str, Any] = field(default_factory=dict)
    name: str = "block"  # For debugging

    def define(self, name: str, value: Any) -> None:
        """Bind a name in this frame, overwriting any existing binding."""
        self.values[name] = value

    def get(self, name: Token) -> Any:
        """Look up a variable in this frame or enclosing frames."""
        env = self
        while env is not None:
            if name.lexeme in env.values:
                return env.values[name.lexeme]
            env = env.enclosing
        raise error_undefined_variable(name)

    def assign(self, name: Token, value: Any) -> None:
        """Update an existing variable wherever it is defined in the chain."""
        env = self
        while env is not None:
            if name.lexeme in env.values:
                env.values[name.lexeme] = value
                return
            env = env.enclosing
        raise error_undefined_variable(name)

    def ancestor(self, distance: int) -> "Environment":
        """The frame exactly ``distance`` hops out."""
        env = self
        for _ in range(distance):
            env = env.enclosing
        return env

    def get_at(self, distance: int, name: str) -> Any:
        return self.ancestor(distance).values[name]

    def assign_at(self, distance: int, name: str, value: Any) -> None:
        self.ancestor(distance).values[name] = value

    def __repr__(self) -> str:
        return f"Environment({self.name}, {sorted(self.values)})"
