"""Error-throwing factory - an injectable error that pre-empts everything after it."""

from __future__ import annotations

from swiftspy.compiler.ir import NamedType, OptionalType
from swiftspy.generator.declarations import FunctionSignature, StoredField, ThrowIfSet
from swiftspy.generator.naming import FieldNames

ERROR = NamedType(name="Error")


def declaration(signature: FunctionSignature) -> StoredField:
    return StoredField(
        name=FieldNames(signature.prefix).throwable_error,
        type=OptionalType(wrapped=ERROR),
    )


def statement(signature: FunctionSignature) -> ThrowIfSet:
    return ThrowIfSet(field=FieldNames(signature.prefix).throwable_error)
