"""
Runtime values for the Lox interpreter.

Lox values are plain Python objects:

    nil       None
    boolean   bool
    number    float
    string    str
    callable  LoxCallable (functions, classes, natives)
    instance  LoxInstance

This module holds the operations the language defines over all of them:
truthiness, equality, printing and type tags.
"""

import math
from typing import Any

from .objects import LoxCallable, LoxClass, LoxInstance


class _Unassigned:
    """Marker for a variable that was declared without an initializer."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNASSIGNED"


UNASSIGNED = _Unassigned()


def is_number(value: Any) -> bool:
    """True for Lox numbers. Python bools are ints, so they are excluded."""
    return isinstance(value, float) and not isinstance(value, bool)


def is_truthy(value: Any) -> bool:
    """nil and false are falsy; everything else (0 and "" included) is truthy."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(a: Any, b: Any) -> bool:
    """Lox ==: nil equals only nil, values of different kinds are never equal."""
    if a is None and b is None:
        return True
    if a is None or b is None:
        return False
    if isinstance(a, bool) or isinstance(b, bool):
        return a is b
    if is_number(a) and is_number(b):
        # NaN compares equal to itself, as value equality rather than IEEE
        return a == b or (math.isnan(a) and math.isnan(b))
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    # Functions, classes and instances compare by identity
    return a is b


def stringify_number(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0 and math.copysign(1.0, value) < 0:
        return "-0"
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def stringify(value: Any) -> str:
    """Render a value the way print shows it."""
    if value is None:
        return "nil"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if is_number(value):
        return stringify_number(value)
    return str(value)


def type_name(value: Any) -> str:
    """The tag the type() native returns for a value."""
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "bool"
    if is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, LoxClass):
        return "class"
    if isinstance(value, LoxInstance):
        return value.klass.name
    if isinstance(value, LoxCallable):
        return "function"
    return type(value).__name__
