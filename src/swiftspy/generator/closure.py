"""Closure factory - an injectable replacement for the whole function body."""

from __future__ import annotations

from swiftspy.compiler.ir import (
    VOID,
    FunctionType,
    ImplicitlyUnwrappedType,
    OptionalType,
    SemanticType,
    is_void,
)
from swiftspy.generator.calls import argument_type
from swiftspy.generator.declarations import (
    ClosureCall,
    Evaluate,
    FunctionSignature,
    IfSet,
    Reference,
    Return,
    Statement,
    StoredField,
)
from swiftspy.generator.generics import Erasure
from swiftspy.generator.naming import FieldNames


def closure_type(signature: FunctionSignature, erasure: Erasure) -> FunctionType:
    """``(params) [async] [throws] -> Return`` with erased generic types."""
    returns: SemanticType = VOID
    if not is_void(signature.return_type):
        assert signature.return_type is not None
        returns = erasure.storage_type(signature.return_type)
        if isinstance(returns, ImplicitlyUnwrappedType):
            # `!` is not allowed inside a function type
            returns = OptionalType(wrapped=returns.wrapped)
    return FunctionType(
        parameters=tuple(erasure.storage_type(argument_type(p)) for p in signature.parameters),
        returns=returns,
        is_async=signature.is_async,
        is_throwing=signature.is_throwing,
    )


def declaration(signature: FunctionSignature, erasure: Erasure) -> StoredField:
    return StoredField(
        name=FieldNames(signature.prefix).closure,
        type=OptionalType(wrapped=closure_type(signature, erasure)),
    )


def statements(
    signature: FunctionSignature,
    erasure: Erasure,
    fallback: Statement | None,
) -> list[Statement]:
    """Call the closure if it is set, otherwise run ``fallback``.

    Void functions call the closure through optional chaining and need no
    fallback.
    """
    name = FieldNames(signature.prefix).closure
    arguments = tuple(Reference(name=p.internal_name) for p in signature.parameters)

    if fallback is None:
        call = ClosureCall(
            closure=name,
            arguments=arguments,
            is_async=signature.is_async,
            is_throwing=signature.is_throwing,
            optional_chaining=True,
        )
        return [Evaluate(value=call)]

    assert signature.return_type is not None
    call = ClosureCall(
        closure=name,
        arguments=arguments,
        is_async=signature.is_async,
        is_throwing=signature.is_throwing,
    )
    return [
        IfSet(
            field=name,
            then=(Return(value=erasure.deliver(call, signature.return_type)),),
            otherwise=(fallback,),
        )
    ]
