"""Call-counter factory - call count, called flag, received arguments and history."""

from __future__ import annotations

from swiftspy.compiler.ir import (
    ArrayType,
    FunctionType,
    NamedType,
    OptionalType,
    Parameter,
    SemanticType,
    TupleElement,
    TupleType,
    is_optional,
)
from swiftspy.generator.declarations import (
    Append,
    Assign,
    ComputedProperty,
    Expression,
    FunctionSignature,
    GeneratedDeclaration,
    Increment,
    IsPositive,
    Reference,
    Return,
    Statement,
    StoredField,
    TupleLiteral,
)
from swiftspy.generator.generics import Erasure
from swiftspy.generator.naming import FieldNames

INT = NamedType(name="Int")
BOOL = NamedType(name="Bool")


def argument_type(parameter: Parameter) -> SemanticType:
    """The type of a parameter as seen inside the function body.

    Variadic parameters arrive as arrays.
    """
    if parameter.is_variadic:
        return ArrayType(element=parameter.type)
    return parameter.type


def received_type(parameter: Parameter, erasure: Erasure) -> SemanticType:
    """The stored type of one received argument (before optional wrapping)."""
    type_ = argument_type(parameter)
    if isinstance(type_, FunctionType) and type_.is_escaping:
        type_ = type_.model_copy(update={"is_escaping": False})
    return erasure.storage_type(type_)


def invocation_type(parameters: tuple[Parameter, ...], erasure: Erasure) -> SemanticType:
    """Element type of the invocation history: plain for one parameter, a labeled tuple otherwise."""
    if len(parameters) == 1:
        return received_type(parameters[0], erasure)
    return TupleType(
        elements=tuple(
            TupleElement(label=p.internal_name, type=received_type(p, erasure)) for p in parameters
        )
    )


def declarations(signature: FunctionSignature, erasure: Erasure) -> list[GeneratedDeclaration]:
    names = FieldNames(signature.prefix)
    result: list[GeneratedDeclaration] = [
        StoredField(name=names.calls_count, type=INT, default_value="0"),
        ComputedProperty(
            name=names.called,
            type=BOOL,
            getter_body=(Return(value=IsPositive(operand=Reference(name=names.calls_count))),),
        ),
    ]

    if not signature.parameters:
        return result

    for parameter in signature.parameters:
        type_ = received_type(parameter, erasure)
        if not is_optional(type_):
            type_ = OptionalType(wrapped=type_)
        result.append(StoredField(name=names.received(parameter), type=type_))

    result.append(
        StoredField(
            name=names.received_invocations,
            type=ArrayType(element=invocation_type(signature.parameters, erasure)),
            default_value="[]",
        )
    )
    return result


def statements(signature: FunctionSignature) -> list[Statement]:
    """Count first, then record what was received."""
    names = FieldNames(signature.prefix)
    result: list[Statement] = [Increment(target=names.calls_count)]

    if not signature.parameters:
        return result

    for parameter in signature.parameters:
        result.append(
            Assign(target=names.received(parameter), value=Reference(name=parameter.internal_name))
        )

    entry: Expression
    if len(signature.parameters) == 1:
        entry = Reference(name=signature.parameters[0].internal_name)
    else:
        entry = TupleLiteral(
            elements=tuple(Reference(name=p.internal_name) for p in signature.parameters)
        )
    result.append(Append(target=names.received_invocations, value=entry))
    return result
