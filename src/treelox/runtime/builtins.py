"""
Built-in (native) functions and classes for the Lox interpreter.

Registered into the globals environment before any user code runs:

    clock()     seconds since the epoch
    type(x)     a type tag string ("number", "string", class name, ...)
    vec()       an empty vector; [a, b, c] literals build one too

Vectors expose append(x), length() and at(i) as bound methods. Negative
indices count from the end.

Native code signals failure by raising ``NativeCallError``; the interpreter
turns that into an ordinary runtime error at the call site.
"""

import logging
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, TYPE_CHECKING

from ..errors import LoxRuntimeError, NativeCallError
from .environment import Environment
from .objects import LoxBindable, LoxCallable, LoxClass, LoxInstance
from .values import is_number, stringify, stringify_number, type_name

if TYPE_CHECKING:
    from .interpreter import Interpreter

logger = logging.getLogger(__name__)

# Python failures inside native code that are reported as Lox runtime errors
_NATIVE_FAILURES = (TypeError, ValueError, ArithmeticError, IndexError, KeyError)

# ids of vectors currently being rendered; a vector met again prints as [...]
_RENDERING: Set[int] = set()


def _invoke(name: str, implementation: Callable[..., Any], args: List[Any]) -> Any:
    try:
        return implementation(*args)
    except (LoxRuntimeError, NativeCallError):
        raise
    except _NATIVE_FAILURES as e:
        raise NativeCallError(f"{name}: {e}") from e


@dataclass
class BuiltinFunction(LoxCallable):
    """
    A native function with a fixed parameter count.
    """
    name: str
    param_count: int
    implementation: Callable[..., Any]
    doc: str = ""

    @property
    def arity(self) -> int:
        return self.param_count

    def call(self, interpreter: "Interpreter", arguments: List[Any]) -> Any:
        return _invoke(self.name, self.implementation, arguments)

    def __str__(self) -> str:
        return f"<native fn {self.name}>"


@dataclass
class BuiltinMethod(LoxBindable):
    """
    A native method. ``implementation(receiver, *args)``.

    Binding returns a copy carrying the receiver, so one registered method
    serves every instance.
    """
    name: str
    param_count: int
    implementation: Callable[..., Any]
    doc: str = ""
    receiver: Optional[LoxInstance] = None

    @property
    def arity(self) -> int:
        return self.param_count

    def bind(self, instance: LoxInstance) -> "BuiltinMethod":
        return replace(self, receiver=instance)

    def call(self, interpreter: "Interpreter", arguments: List[Any]) -> Any:
        if self.receiver is None:
            raise NativeCallError(f"Method '{self.name}' called without a receiver.")
        return _invoke(self.name, self.implementation, [self.receiver] + list(arguments))

    def __str__(self) -> str:
        return f"<native method {self.name}>"


# =============================================================================
# Vectors
# =============================================================================

class VectorInstance(LoxInstance):
    """An instance of ``vec``: a growable list of Lox values."""

    def __init__(self, klass: LoxClass, elements: Optional[List[Any]] = None):
        super().__init__(klass)
        self.elements: List[Any] = list(elements or [])

    def append(self, value: Any) -> None:
        self.elements.append(value)

    def length(self) -> int:
        return len(self.elements)

    def at(self, index: int) -> Any:
        position = index + len(self.elements) if index < 0 else index
        if position >= len(self.elements):
            raise NativeCallError(
                f"Index {index} is out of bounds for vector of length {len(self.elements)}.")
        if position < 0:
            raise NativeCallError(
                f"Negative index {index} is out of bounds for vector of length {len(self.elements)}.")
        return self.elements[position]

    def __str__(self) -> str:
        if id(self) in _RENDERING:
            return "[...]"
        _RENDERING.add(id(self))
        try:
            return "[" + ", ".join(stringify(e) for e in self.elements) + "]"
        finally:
            _RENDERING.discard(id(self))


class LoxVector(LoxClass):
    """The native ``vec`` class. Takes no constructor arguments."""

    def __init__(self, methods: Dict[str, LoxBindable]):
        super().__init__("vec", None, methods)

    def create_instance(self, elements: Optional[List[Any]] = None) -> VectorInstance:
        return VectorInstance(self, elements)


def _vec_append(vector: VectorInstance, value: Any) -> None:
    vector.append(value)
    return None


def _vec_length(vector: VectorInstance) -> float:
    return float(vector.length())


def _vec_at(vector: VectorInstance, index: Any) -> Any:
    if not is_number(index) or not index.is_integer():
        shown = stringify_number(index) if is_number(index) else type_name(index)
        raise NativeCallError(f"Vectors can only be indexed with integers, index is: {shown}.")
    return vector.at(int(index))


# =============================================================================
# Registry
# =============================================================================

class BuiltinRegistry:
    """
    Registry of all native functions and methods.

    Functions are registered by name; methods by (class name, method name).
    """

    def __init__(self):
        self._functions: Dict[str, BuiltinFunction] = {}
        self._methods: Dict[Tuple[str, str], BuiltinMethod] = {}
        self._register_all()
        self.vector_class = LoxVector(self.get_methods("vec"))

    def get_function(self, name: str) -> Optional[BuiltinFunction]:
        """Look up a function by name."""
        return self._functions.get(name)

    def get_method(self, class_name: str, method_name: str) -> Optional[BuiltinMethod]:
        """Look up a method by class and method name."""
        return self._methods.get((class_name, method_name))

    def get_methods(self, class_name: str) -> Dict[str, LoxBindable]:
        return {name: method for (owner, name), method in self._methods.items()
                if owner == class_name}

    def register(self, func: BuiltinFunction) -> None:
        """Register a function."""
        self._functions[func.name] = func

    def register_method(self, class_name: str, method: BuiltinMethod) -> None:
        """Register a method for a native class."""
        self._methods[(class_name, method.name)] = method

    def get_all_functions(self) -> Dict[str, BuiltinFunction]:
        return dict(self._functions)

    def install(self, environment: Environment) -> None:
        """Define every native in the given (globals) environment."""
        for name, func in self._functions.items():
            environment.define(name, func)
        environment.define(self.vector_class.name, self.vector_class)
        logger.debug("installed %d native functions and class '%s'",
                     len(self._functions), self.vector_class.name)

    def _register_all(self) -> None:
        self.register(BuiltinFunction(
            "clock", 0, lambda: time.time(),
            "Seconds since the epoch."))
        self.register(BuiltinFunction(
            "type", 1, type_name,
            "Type tag of a value; instances report their class name."))

        self.register_method("vec", BuiltinMethod(
            "append", 1, _vec_append, "Append a value; returns nil."))
        self.register_method("vec", BuiltinMethod(
            "length", 0, _vec_length, "Number of elements."))
        self.register_method("vec", BuiltinMethod(
            "at", 1, _vec_at, "Element at an index; negative counts from the end."))


_registry: Optional[BuiltinRegistry] = None


def get_builtin_registry() -> BuiltinRegistry:
    """Get the global built-in registry."""
    global _registry
    if _registry is None:
        _registry = BuiltinRegistry()
    return _registry
