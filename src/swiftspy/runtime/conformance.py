"""Structural conformance of Python values to Swift semantic types."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from swiftspy.compiler.ir import (
    ArrayType,
    DictionaryType,
    ErasedAny,
    FunctionType,
    GenericPlaceholder,
    ImplicitlyUnwrappedType,
    NamedType,
    OptionalType,
    SemanticType,
    TupleType,
)

# Swift standard names and the Python types standing in for them
SCALAR_TYPES: dict[str, tuple[type, ...]] = {
    "Int": (int,),
    "Int8": (int,),
    "Int16": (int,),
    "Int32": (int,),
    "Int64": (int,),
    "UInt": (int,),
    "UInt8": (int,),
    "UInt16": (int,),
    "UInt32": (int,),
    "UInt64": (int,),
    "Double": (float,),
    "Float": (float,),
    "CGFloat": (float,),
    "String": (str,),
    "Substring": (str,),
    "Character": (str,),
    "Bool": (bool,),
    "Error": (BaseException,),
    "Data": (bytes, bytearray),
}

Bindings = Mapping[str, type | tuple[type, ...]]


def conforms(value: Any, type_: SemanticType, bindings: Bindings | None = None) -> bool:
    """Whether ``value`` can be used where ``type_`` is expected.

    Unknown nominal types and unbound placeholders are accepted, since
    nothing about them can be checked from Python.
    """
    bindings = bindings or {}
    match type_:
        case ErasedAny():
            return True
        case OptionalType(wrapped=wrapped) | ImplicitlyUnwrappedType(wrapped=wrapped):
            return value is None or conforms(value, wrapped, bindings)
        case NamedType(name="Void"):
            return value is None or value == ()
        case NamedType(name="Optional", arguments=(wrapped,)):
            return value is None or conforms(value, wrapped, bindings)
        case NamedType(name="Array", arguments=(element,)):
            return conforms(value, ArrayType(element=element), bindings)
        case NamedType(name="Set", arguments=(element,)):
            return isinstance(value, (set, frozenset)) and all(
                conforms(v, element, bindings) for v in value
            )
        case NamedType(name="Dictionary", arguments=(key, item)):
            return conforms(value, DictionaryType(key=key, value=item), bindings)
        case NamedType(name=name):
            expected = SCALAR_TYPES.get(name)
            if expected is None:
                return value is not None
            return _is_instance(value, expected)
        case ArrayType(element=element):
            return isinstance(value, list) and all(conforms(v, element, bindings) for v in value)
        case DictionaryType(key=key, value=item):
            return isinstance(value, dict) and all(
                conforms(k, key, bindings) and conforms(v, item, bindings)
                for k, v in value.items()
            )
        case TupleType(elements=()):
            return value is None or value == ()
        case TupleType(elements=elements):
            return (
                isinstance(value, tuple)
                and len(value) == len(elements)
                and all(conforms(v, e.type, bindings) for v, e in zip(value, elements))
            )
        case FunctionType():
            return callable(value)
        case GenericPlaceholder(name=name):
            bound = bindings.get(name)
            if bound is None:
                return True
            return _is_instance(value, bound)
    return False


def _is_instance(value: Any, expected: type | tuple[type, ...]) -> bool:
    types = expected if isinstance(expected, tuple) else (expected,)
    # bool is an int subclass in Python but not an Int in Swift
    if isinstance(value, bool) and bool not in types:
        return False
    return isinstance(value, types)
