"""
Lox runtime - tree-walking interpreter and object model.

This module provides:
- Interpreter: Executes resolved Lox statements
- Environment: Runtime variable frames
- LoxFunction, LoxClass, LoxInstance: The object model
- BuiltinRegistry: Native functions (clock, type) and the vec class
"""

from .environment import Environment

from .objects import (
    LoxCallable,
    LoxBindable,
    LoxFunction,
    LoxClass,
    LoxInstance,
)

from .values import (
    UNASSIGNED,
    is_number,
    is_truthy,
    is_equal,
    stringify,
    type_name,
)

from .builtins import (
    BuiltinFunction,
    BuiltinMethod,
    BuiltinRegistry,
    LoxVector,
    VectorInstance,
    get_builtin_registry,
)

from .interpreter import (
    Interpreter,
    ReturnSignal,
)

__all__ = [
    'Environment',
    'LoxCallable',
    'LoxBindable',
    'LoxFunction',
    'LoxClass',
    'LoxInstance',
    'UNASSIGNED',
    'is_number',
    'is_truthy',
    'is_equal',
    'stringify',
    'type_name',
    'BuiltinFunction',
    'BuiltinMethod',
    'BuiltinRegistry',
    'LoxVector',
    'VectorInstance',
    'get_builtin_registry',
    'Interpreter',
    'ReturnSignal',
]
