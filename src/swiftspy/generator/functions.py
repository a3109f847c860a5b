"""Function spy assembly - runs the per-function factories in their fixed order."""

from __future__ import annotations

from swiftspy.compiler.ir import FunctionMember, is_void
from swiftspy.generator import calls, closure, return_value, throwing
from swiftspy.generator.declarations import (
    FunctionImplementation,
    FunctionSignature,
    GeneratedDeclaration,
    Statement,
)
from swiftspy.generator.generics import Erasure
from swiftspy.generator.naming import FieldNames, check_unique_names


def signature_for(function: FunctionMember, prefix: str) -> FunctionSignature:
    return FunctionSignature(
        name=function.name,
        prefix=prefix,
        parameters=function.parameters,
        generic_parameters=function.generic_parameters,
        generic_requirements=function.generic_requirements,
        is_async=function.is_async,
        is_throwing=function.is_throwing,
        return_type=function.return_type,
    )


def build_function(
    signature: FunctionSignature, member: str
) -> tuple[list[GeneratedDeclaration], FunctionImplementation]:
    """Generate the fields and the body of one spied function.

    Order: call counter, throwable error, return value, closure. The body
    counts and records first, then throws, then dispatches to the closure or
    the stored return value.

    Args:
        signature: The function's declared shape and its prefix.
        member: Description of the member, for error messages.

    Returns:
        Tuple of (field declarations, implementation).
    """
    check_unique_names(FieldNames(signature.prefix), signature.parameters, member)

    erasure = Erasure.for_signature(
        signature.generic_parameters,
        [p.type for p in signature.parameters],
        signature.return_type,
    )
    returns_value = not is_void(signature.return_type)

    fields = calls.declarations(signature, erasure)
    body: list[Statement] = calls.statements(signature)

    if signature.is_throwing:
        fields.append(throwing.declaration(signature))
        body.append(throwing.statement(signature))

    fallback: Statement | None = None
    if returns_value:
        fields.append(return_value.declaration(signature, erasure))
        fallback = return_value.statement(signature, erasure)

    fields.append(closure.declaration(signature, erasure))
    body.extend(closure.statements(signature, erasure, fallback))

    return fields, FunctionImplementation(signature=signature, statements=tuple(body))
