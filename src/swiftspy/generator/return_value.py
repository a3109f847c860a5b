"""Return-value factory - a configurable value to return and the statement returning it.

A non-optional return type is stored implicitly unwrapped, so a test that
forgets to configure it fails loudly on the first call::

    var fooReturnValue: Int!
    return fooReturnValue

An optional return type is stored as-is::

    var barReturnValue: String?
    return barReturnValue
"""

from __future__ import annotations

from swiftspy.compiler.ir import ImplicitlyUnwrappedType, SemanticType, is_optional
from swiftspy.generator.declarations import FunctionSignature, Reference, Return, StoredField
from swiftspy.generator.generics import Erasure
from swiftspy.generator.naming import FieldNames


def field_type(return_type: SemanticType, erasure: Erasure) -> SemanticType:
    stored = erasure.storage_type(return_type)
    if is_optional(stored):
        return stored
    return ImplicitlyUnwrappedType(wrapped=stored)


def declaration(signature: FunctionSignature, erasure: Erasure) -> StoredField:
    assert signature.return_type is not None
    return StoredField(
        name=FieldNames(signature.prefix).return_value,
        type=field_type(signature.return_type, erasure),
    )


def statement(signature: FunctionSignature, erasure: Erasure) -> Return:
    assert signature.return_type is not None
    value = Reference(name=FieldNames(signature.prefix).return_value)
    return Return(value=erasure.deliver(value, signature.return_type))
