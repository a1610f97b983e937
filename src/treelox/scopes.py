"""
Compile-time lexical scopes for the Lox resolver.

A ``ScopeStack`` mirrors the nesting of blocks, function bodies and class
bodies while the resolver walks the tree. It is never consulted at run time;
the interpreter's ``Environment`` chain plays the matching role there.
Globals are not tracked: an empty stack means "top level".
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class Scope:
    """A single lexical scope: name -> defined flag."""
    names: Dict[str, bool] = field(default_factory=dict)
    name: str = ""  # For debugging: "block", "function fib", "this", ...

    def declare(self, variable: str) -> None:
        """Mark a name present but not yet safe to read."""
        self.names[variable] = False

    def define(self, variable: str) -> None:
        """Mark a name fully initialized."""
        self.names[variable] = True

    def is_declared(self, variable: str) -> bool:
        return variable in self.names

    def is_defined(self, variable: str) -> bool:
        return self.names.get(variable, False)

    def __contains__(self, variable: str) -> bool:
        return variable in self.names


class ScopeStack:
    """
    Stack of local scopes, innermost last.

    ``distance_to(name)`` reports how many scopes separate the innermost one
    from the scope declaring ``name``; this is exactly the number of
    environment hops the interpreter will make at run time.
    """

    def __init__(self):
        self._stack: List[Scope] = []

    def push(self, scope: Optional[Scope] = None, name: str = "") -> Scope:
        """Push a scope (a fresh one by default) and return it."""
        if scope is None:
            scope = Scope(name=name)
        self._stack.append(scope)
        return scope

    def pop(self) -> Scope:
        return self._stack.pop()

    def last(self) -> Scope:
        """The innermost scope. The stack must not be empty."""
        return self._stack[-1]

    def at(self, index: int) -> Scope:
        return self._stack[index]

    def is_empty(self) -> bool:
        return not self._stack

    @property
    def depth(self) -> int:
        return len(self._stack)

    def distance_to(self, variable: str) -> Optional[int]:
        """Hops from the innermost scope to the one declaring ``variable``, or None if global."""
        for i in range(len(self._stack) - 1, -1, -1):
            if variable in self._stack[i]:
                return len(self._stack) - 1 - i
        return None

    def __len__(self) -> int:
        return len(self._stack)
