"""Subscript factory.

A subscript has no name, so its prefix is synthesized from the word
``subscript`` and its index labels and types. The getter and the setter are
tracked as two independent synthetic functions, ``<pfx>Get`` and
``<pfx>Set``; the setter receives the index parameters plus ``newValue``.
"""

from __future__ import annotations

from swiftspy.compiler.ir import Parameter, SubscriptMember
from swiftspy.generator.declarations import (
    FunctionSignature,
    GeneratedDeclaration,
    SubscriptImplementation,
)
from swiftspy.generator.functions import build_function


def getter_signature(member: SubscriptMember, prefix: str) -> FunctionSignature:
    return FunctionSignature(
        name="get",
        prefix=f"{prefix}Get",
        parameters=member.parameters,
        return_type=member.return_type,
    )


def setter_signature(member: SubscriptMember, prefix: str) -> FunctionSignature:
    new_value = Parameter(internal_name="newValue", type=member.return_type)
    return FunctionSignature(
        name="set",
        prefix=f"{prefix}Set",
        parameters=(*member.parameters, new_value),
    )


def build_subscript(
    member: SubscriptMember, prefix: str, description: str
) -> list[GeneratedDeclaration]:
    fields, getter = build_function(getter_signature(member, prefix), description)
    result: list[GeneratedDeclaration] = list(fields)

    setter = None
    if member.is_settable:
        setter_fields, setter = build_function(setter_signature(member, prefix), description)
        result.extend(setter_fields)

    result.append(
        SubscriptImplementation(
            parameters=member.parameters,
            return_type=member.return_type,
            getter=getter,
            setter=setter,
        )
    )
    return result
