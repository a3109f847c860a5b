"""Generics substitution policy.

Spy storage lives on the spy type, so it cannot be parameterized by a generic
parameter of one function. Any stored type that mentions such a placeholder is
erased as a whole to ``Any``, and every place an erased value is handed back as
the declared type gets a forced cast (``as!``). The cast fails at run time when
a test configures a value of the wrong type - that is the contract the caller
has to uphold.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from swiftspy.compiler.ir import (
    ERASED,
    ArrayType,
    DictionaryType,
    FunctionMember,
    FunctionType,
    GenericPlaceholder,
    ImplicitlyUnwrappedType,
    NamedType,
    OptionalType,
    PropertyMember,
    SemanticType,
    SubscriptMember,
    TupleType,
)
from swiftspy.diagnostics import DiagnosticContext, GenerationError, describe_member
from swiftspy.generator.declarations import Expression, ForcedCast


def placeholders(type_: SemanticType) -> Iterator[str]:
    """Yield the name of every generic placeholder inside a type."""
    match type_:
        case GenericPlaceholder(name=name):
            yield name.split(".")[0]
        case NamedType(arguments=arguments):
            for argument in arguments:
                yield from placeholders(argument)
        case OptionalType(wrapped=wrapped) | ImplicitlyUnwrappedType(wrapped=wrapped):
            yield from placeholders(wrapped)
        case ArrayType(element=element):
            yield from placeholders(element)
        case DictionaryType(key=key, value=value):
            yield from placeholders(key)
            yield from placeholders(value)
        case TupleType(elements=elements):
            for element in elements:
                yield from placeholders(element.type)
        case FunctionType(parameters=parameters, returns=returns):
            for parameter in parameters:
                yield from placeholders(parameter)
            yield from placeholders(returns)


def references_placeholder(type_: SemanticType | None, names: tuple[str, ...]) -> bool:
    """Whether ``type_`` mentions any of the generic parameter ``names``."""
    if type_ is None or not names:
        return False
    return any(name in names for name in placeholders(type_))


def validate_generics(
    member: PropertyMember | FunctionMember | SubscriptMember,
    interface_generics: tuple[str, ...],
) -> None:
    """Check the placeholder invariants of one member.

    Raises:
        GenerationError: On a function-level generic that shadows an
            interface-level one, or on a placeholder that no enclosing
            function declares.
    """
    description = describe_member(member)
    ctx = DiagnosticContext(member=description)

    declared: tuple[str, ...] = ()
    if isinstance(member, FunctionMember):
        declared = member.generic_parameters
        for name in declared:
            if name in interface_generics:
                ctx.add_check(f"generic parameter {name}", False, "shadows an associatedtype")
                ctx.add_suggestion(f"Rename the function generic parameter {name!r}")
                raise GenerationError(
                    f"Function generic parameter {name!r} collides with an interface-level generic",
                    member=description,
                    context=ctx,
                )
            ctx.add_check(f"generic parameter {name}", True)

    types: list[SemanticType] = []
    match member:
        case PropertyMember(type=type_):
            types.append(type_)
        case FunctionMember(parameters=parameters, return_type=return_type):
            types.extend(p.type for p in parameters)
            if return_type is not None:
                types.append(return_type)
        case SubscriptMember(parameters=parameters, return_type=return_type):
            types.extend(p.type for p in parameters)
            types.append(return_type)

    for type_ in types:
        for name in placeholders(type_):
            if name not in declared:
                ctx.add_check(f"placeholder {name}", False, "not declared by the member")
                raise GenerationError(
                    f"Generic placeholder {name!r} cannot be represented in this member",
                    member=description,
                    context=ctx,
                )


@dataclass(frozen=True)
class Erasure:
    """The erasure decision for one function signature."""

    generic_parameters: tuple[str, ...] = ()
    engaged: bool = False

    @classmethod
    def for_signature(
        cls,
        generic_parameters: tuple[str, ...],
        parameter_types: list[SemanticType],
        return_type: SemanticType | None,
    ) -> Erasure:
        """Engage only if a parameter or the return type mentions a function generic."""
        engaged = any(
            references_placeholder(t, generic_parameters) for t in [*parameter_types, return_type]
        )
        return cls(generic_parameters=generic_parameters, engaged=engaged)

    def erases(self, type_: SemanticType | None) -> bool:
        return self.engaged and references_placeholder(type_, self.generic_parameters)

    def storage_type(self, type_: SemanticType) -> SemanticType:
        """The type to store a value of ``type_`` as."""
        if self.erases(type_):
            return ERASED
        return type_

    def deliver(self, value: Expression, declared: SemanticType) -> Expression:
        """Wrap ``value`` in a forced cast when it is stored erased."""
        if self.erases(declared):
            return ForcedCast(value=value, type=declared)
        return value
