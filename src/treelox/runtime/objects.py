"""
Lox object model: callables, classes and instances.

- ``LoxCallable``: anything a call expression can invoke
- ``LoxBindable``: a callable that can be bound to an instance (a method)
- ``LoxFunction``: a user-defined function or method with its closure
- ``LoxClass``: a class; calling it constructs an instance
- ``LoxInstance``: an object with its own fields
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from ..ast import FunctionDef, INITIALIZER_NAME, THIS_NAME
from ..tokens import Token
from ..errors import error_undefined_property
from .environment import Environment

if TYPE_CHECKING:
    from .interpreter import Interpreter


class LoxCallable(ABC):
    """Something that can be called with a fixed number of arguments."""

    @property
    @abstractmethod
    def arity(self) -> int:
        ...

    @abstractmethod
    def call(self, interpreter: "Interpreter", arguments: List[Any]) -> Any:
        """Invoke with arguments already checked against ``arity``."""
        ...


class LoxBindable(LoxCallable):
    """A callable that becomes a method when bound to an instance."""

    @abstractmethod
    def bind(self, instance: "LoxInstance") -> "LoxBindable":
        """Return a new callable with ``this`` bound; never mutates self."""
        ...


class LoxFunction(LoxBindable):
    """
    A user-defined function.

    ``closure`` is the environment that was current where the function was
    declared. Each call runs the body in a fresh frame whose parent is the
    closure, never the caller's frame.
    """

    def __init__(self, declaration: FunctionDef, closure: Environment,
                 is_initializer: bool = False):
        self.declaration = declaration
        self.closure = closure
        self.is_initializer = is_initializer

    @property
    def name(self) -> str:
        return self.declaration.name.lexeme

    @property
    def arity(self) -> int:
        return len(self.declaration.params)

    def call(self, interpreter: "Interpreter", arguments: List[Any]) -> Any:
        environment = Environment(self.closure, name=f"call {self.name}")
        for param, argument in zip(self.declaration.params, arguments):
            environment.define(param.lexeme, argument)

        signal = interpreter.execute_block(self.declaration.body, environment)

        # An initializer always yields its instance, even after a bare return
        if self.is_initializer:
            return self.closure.get_at(0, THIS_NAME)
        if signal is not None:
            return signal.value
        return None

    def bind(self, instance: "LoxInstance") -> "LoxFunction":
        environment = Environment(self.closure, name=f"bound {self.name}")
        environment.define(THIS_NAME, instance)
        return LoxFunction(self.declaration, environment, self.is_initializer)

    def __str__(self) -> str:
        return f"<fn {self.name}>"

    def __repr__(self) -> str:
        return f"LoxFunction({self.name}, arity={self.arity})"


class LoxClass(LoxCallable):
    """A class. Calling it allocates an instance and runs ``init`` if present."""

    def __init__(self, name: str, superclass: Optional["LoxClass"] = None,
                 methods: Optional[Dict[str, LoxBindable]] = None):
        self.name = name
        self.superclass = superclass
        self.methods: Dict[str, LoxBindable] = dict(methods or {})

    def find_method(self, name: str) -> Optional[LoxBindable]:
        """Look up a method here, then in the superclass chain."""
        if name in self.methods:
            return self.methods[name]
        if self.superclass is not None:
            return self.superclass.find_method(name)
        return None

    @property
    def arity(self) -> int:
        initializer = self.find_method(INITIALIZER_NAME)
        if initializer is None:
            return 0
        return initializer.arity

    def create_instance(self) -> "LoxInstance":
        return LoxInstance(self)

    def call(self, interpreter: "Interpreter", arguments: List[Any]) -> Any:
        instance = self.create_instance()
        initializer = self.find_method(INITIALIZER_NAME)
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)
        return instance

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        parent = f" < {self.superclass.name}" if self.superclass else ""
        return f"LoxClass({self.name}{parent})"


class LoxInstance:
    """An instance of a Lox class. Fields are created on first assignment."""

    def __init__(self, klass: LoxClass):
        self.klass = klass
        self.fields: Dict[str, Any] = {}

    def get(self, name: Token) -> Any:
        """Fields shadow methods; a method comes back bound to this instance."""
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]

        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)

        raise error_undefined_property(name)

    def set(self, name: Token, value: Any) -> None:
        self.fields[name.lexeme] = value

    def __str__(self) -> str:
        return f"{self.klass.name} instance"

    def __repr__(self) -> str:
        return f"LoxInstance({self.klass.name}, fields={sorted(self.fields)})"
