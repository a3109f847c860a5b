"""Naming strategy - the variable prefix of a member and the fields built from it."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Sequence

from swiftspy.compiler.ir import (
    ArrayType,
    DictionaryType,
    ErasedAny,
    FunctionMember,
    FunctionType,
    GenericPlaceholder,
    ImplicitlyUnwrappedType,
    NamedType,
    OptionalType,
    Parameter,
    SemanticType,
    TupleType,
)
from swiftspy.config import OverloadPolicy
from swiftspy.diagnostics import DiagnosticContext, GenerationError, describe_member

logger = logging.getLogger(__name__)


def capitalize(name: str) -> str:
    """Uppercase the first letter, leave the rest unchanged."""
    return name[:1].upper() + name[1:]


def variable_prefix(name: str, parameters: Sequence[Parameter]) -> str:
    """Derive the canonical prefix for a function.

    ``fetch(id:)`` -> ``fetchId``, ``wrap(_:)`` -> ``wrap``,
    ``move(from:to:)`` -> ``moveFromTo``.
    """
    return name + "".join(capitalize(p.label) for p in parameters if p.has_label and p.label)


def subscript_prefix(parameters: Sequence[Parameter]) -> str:
    """Synthesize a prefix for a subscript, which has no name of its own.

    ``subscript(index: Int)`` -> ``subscriptIndexInt``.
    """
    parts = ["subscript"]
    for parameter in parameters:
        name = parameter.label if parameter.has_label and parameter.label else parameter.internal_name
        parts.append(capitalize(name))
        parts.append(type_identifier(parameter.type))
    return "".join(parts)


def type_identifier(type_: SemanticType) -> str:
    """Turn a type into an identifier fragment, e.g. ``[String: Int]?`` -> ``OptionalDictionaryStringInt``."""
    match type_:
        case NamedType(name=name, arguments=arguments):
            base = "".join(capitalize(part) for part in name.split("."))
            return base + "".join(type_identifier(arg) for arg in arguments)
        case OptionalType(wrapped=wrapped) | ImplicitlyUnwrappedType(wrapped=wrapped):
            return "Optional" + type_identifier(wrapped)
        case ArrayType(element=element):
            return "Array" + type_identifier(element)
        case DictionaryType(key=key, value=value):
            return "Dictionary" + type_identifier(key) + type_identifier(value)
        case TupleType(elements=elements):
            if not elements:
                return "Void"
            return "Tuple" + "".join(type_identifier(e.type) for e in elements)
        case FunctionType():
            return "Closure"
        case GenericPlaceholder(name=name):
            return capitalize(name)
        case ErasedAny():
            return "Any"
    raise TypeError(f"Unsupported type: {type_!r}")


@dataclass(frozen=True)
class FieldNames:
    """Field names derived from one variable prefix."""

    prefix: str

    @property
    def calls_count(self) -> str:
        return f"{self.prefix}CallsCount"

    @property
    def called(self) -> str:
        return f"{self.prefix}Called"

    def received(self, parameter: Parameter) -> str:
        return f"{self.prefix}Received{capitalize(parameter.internal_name)}"

    @property
    def received_invocations(self) -> str:
        return f"{self.prefix}ReceivedInvocations"

    @property
    def throwable_error(self) -> str:
        return f"{self.prefix}ThrowableError"

    @property
    def return_value(self) -> str:
        return f"{self.prefix}ReturnValue"

    @property
    def closure(self) -> str:
        return f"{self.prefix}Closure"

    def fixed(self) -> list[str]:
        """Every concern field name that does not depend on a parameter."""
        return [
            self.calls_count,
            self.called,
            self.received_invocations,
            self.throwable_error,
            self.return_value,
            self.closure,
        ]


def check_unique_names(names: FieldNames, parameters: Sequence[Parameter], member: str) -> None:
    """Fail if a parameter's received field collides with another field of the member.

    A parameter named ``invocations`` produces ``<pfx>ReceivedInvocations``,
    which is also the history field.
    """
    ctx = DiagnosticContext(member=member)
    taken = set(names.fixed())
    for parameter in parameters:
        field_name = names.received(parameter)
        if field_name in taken:
            ctx.add_check(f"parameter {parameter.internal_name}", False, f"{field_name} already used")
            ctx.add_suggestion(f"Rename the internal parameter name {parameter.internal_name!r}")
            raise GenerationError(
                f"Generated field {field_name!r} is not unique",
                member=member,
                context=ctx,
            )
        taken.add(field_name)


def resolve_prefixes(
    functions: Sequence[FunctionMember],
    policy: OverloadPolicy = OverloadPolicy.DISAMBIGUATE,
) -> list[str]:
    """Compute the variable prefix of every function, handling overloads.

    Functions whose plain prefixes collide form a group. Under DISAMBIGUATE
    every member of the group gets a suffix from its parameter types, then
    from its return type if that is still not enough. Under KEEP the
    colliding prefixes are returned unchanged.

    Returns:
        Prefixes in the same order as ``functions``.

    Raises:
        GenerationError: If DISAMBIGUATE cannot separate a group.
    """
    prefixes = [variable_prefix(f.name, f.parameters) for f in functions]

    groups: dict[str, list[int]] = defaultdict(list)
    for index, prefix in enumerate(prefixes):
        groups[prefix].append(index)

    for prefix, indexes in groups.items():
        if len(indexes) < 2:
            continue

        if policy == OverloadPolicy.KEEP:
            logger.warning(
                "Overloads share the prefix %r; generated fields will collide", prefix
            )
            continue

        candidates = {
            i: prefix + "".join(type_identifier(p.type) for p in functions[i].parameters)
            for i in indexes
        }
        if len(set(candidates.values())) < len(indexes):
            candidates = {
                i: candidates[i] + _return_identifier(functions[i]) for i in indexes
            }
        if len(set(candidates.values())) < len(indexes):
            member = describe_member(functions[indexes[0]])
            ctx = DiagnosticContext(member=member)
            for i in indexes:
                ctx.add_check(describe_member(functions[i]), False, f"prefix {candidates[i]}")
            ctx.add_suggestion("Rename one of the overloads")
            ctx.add_suggestion("Set generator.overloads to 'keep' to accept colliding names")
            raise GenerationError(
                f"Cannot disambiguate overloads sharing the prefix {prefix!r}",
                member=member,
                context=ctx,
            )

        for i, candidate in candidates.items():
            logger.debug("Disambiguated %s as %r", describe_member(functions[i]), candidate)
            prefixes[i] = candidate

    if policy == OverloadPolicy.DISAMBIGUATE:
        seen: dict[str, int] = {}
        for index, prefix in enumerate(prefixes):
            if prefix in seen:
                member = describe_member(functions[index])
                ctx = DiagnosticContext(member=member)
                ctx.add_check(describe_member(functions[seen[prefix]]), False, f"prefix {prefix}")
                ctx.add_suggestion("Rename one of the functions")
                raise GenerationError(
                    f"Disambiguated prefix {prefix!r} collides with another function",
                    member=member,
                    context=ctx,
                )
            seen[prefix] = index

    return prefixes


def _return_identifier(function: FunctionMember) -> str:
    if function.return_type is None:
        return "Void"
    return type_identifier(function.return_type)


def overload_key(function: FunctionMember) -> str:
    """The most specific prefix DISAMBIGUATE can derive for ``function``.

    Two functions with equal keys cannot be told apart by any suffix.
    """
    return (
        variable_prefix(function.name, function.parameters)
        + "".join(type_identifier(p.type) for p in function.parameters)
        + _return_identifier(function)
    )
