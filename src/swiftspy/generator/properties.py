"""Property spy factory - a computed property proxying an ``underlying`` backing field."""

from __future__ import annotations

from swiftspy.compiler.ir import ImplicitlyUnwrappedType, PropertyMember, SemanticType, is_optional
from swiftspy.generator.declarations import (
    Assign,
    ComputedProperty,
    GeneratedDeclaration,
    Reference,
    Return,
    StoredField,
)
from swiftspy.generator.naming import capitalize


def backing_name(property_name: str) -> str:
    return f"underlying{capitalize(property_name)}"


def backing_type(type_: SemanticType) -> SemanticType:
    if is_optional(type_):
        return type_
    return ImplicitlyUnwrappedType(wrapped=type_)


def build_property(member: PropertyMember) -> list[GeneratedDeclaration]:
    """``var p: T { get { underlyingP } set { underlyingP = newValue } }`` plus ``var underlyingP: T!``."""
    backing = backing_name(member.name)

    setter = None
    if member.is_settable:
        setter = (Assign(target=backing, value=Reference(name="newValue")),)

    return [
        ComputedProperty(
            name=member.name,
            type=member.type,
            getter_body=(Return(value=Reference(name=backing)),),
            setter_body=setter,
        ),
        StoredField(name=backing, type=backing_type(member.type)),
    ]
