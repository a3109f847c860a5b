"""Member assembly - turns an InterfaceSpecification into a SpyDeclaration."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from swiftspy.compiler.ir import (
    FunctionMember,
    InterfaceSpecification,
    Member,
    PropertyMember,
    SubscriptMember,
)
from swiftspy.config import GeneratorConfig, MemberErrorPolicy, OverloadPolicy
from swiftspy.diagnostics import DiagnosticContext, GenerationError, describe_member
from swiftspy.generator.declarations import GeneratedDeclaration, SpyDeclaration
from swiftspy.generator.functions import build_function, signature_for
from swiftspy.generator.generics import validate_generics
from swiftspy.generator.naming import (
    overload_key,
    resolve_prefixes,
    subscript_prefix,
    type_identifier,
)
from swiftspy.generator.properties import build_property
from swiftspy.generator.subscripts import build_subscript

logger = logging.getLogger(__name__)


@dataclass
class GenerationReport:
    """A generated spy plus the members that had to be left out."""

    spy: SpyDeclaration
    failures: list[GenerationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class SpyGenerator:
    """Generates spy declarations for interfaces.

    Stateless apart from its configuration; one instance can be reused for
    any number of interfaces.
    """

    def __init__(self, config: GeneratorConfig | None = None):
        self.config = config or GeneratorConfig()

    def generate(self, interface: InterfaceSpecification, guard: str | None = None) -> SpyDeclaration:
        """Generate the spy for ``interface``.

        Args:
            interface: The parsed protocol.
            guard: Conditional-compilation flag. Overrides the one from the
                source attribute and the configured default.

        Returns:
            The spy declaration. Under the SKIP policy, malformed members are
            missing from it; use ``generate_report`` to see which.

        Raises:
            GenerationError: For the first malformed member (FAIL policy), or
                when the prefixes of distinct members collide.
        """
        return self.generate_report(interface, guard).spy

    def generate_report(
        self, interface: InterfaceSpecification, guard: str | None = None
    ) -> GenerationReport:
        """Generate the spy, collecting member failures instead of raising under SKIP."""
        prefixes, rejected = self._prefixes(interface)

        members: list[GeneratedDeclaration] = []
        failures: list[GenerationError] = []
        seen_properties: set[str] = set()

        for index, member in enumerate(interface.members):
            try:
                if index in rejected:
                    raise rejected[index]
                if isinstance(member, PropertyMember):
                    self._check_duplicate_property(member, seen_properties)
                members.extend(self._build_member(member, prefixes[index], interface))
            except GenerationError as e:
                if self.config.member_errors == MemberErrorPolicy.FAIL:
                    raise
                logger.warning("Skipping %s: %s", e.member, e.summary)
                failures.append(e)

        spy = SpyDeclaration(
            name=f"{interface.name}Spy",
            conforms_to=interface.name,
            generic_parameters=interface.generic_parameters,
            generic_requirements=interface.generic_requirements,
            members=tuple(members),
            guard=self._guard(interface, guard),
            access_level=interface.access_level,
        )
        logger.debug(
            "Generated %s with %d declarations from %d members",
            spy.name,
            len(spy.members),
            len(interface.members),
        )
        return GenerationReport(spy=spy, failures=failures)

    # =========================================================================
    # Dispatch
    # =========================================================================

    def _build_member(
        self,
        member: Member,
        prefix: str | None,
        interface: InterfaceSpecification,
    ) -> list[GeneratedDeclaration]:
        validate_generics(member, interface.generic_parameters)
        description = describe_member(member)
        logger.debug("Generating %s", description)

        match member:
            case PropertyMember():
                return build_property(member)
            case FunctionMember():
                assert prefix is not None
                fields, implementation = build_function(signature_for(member, prefix), description)
                return [*fields, implementation]
            case SubscriptMember():
                assert prefix is not None
                return build_subscript(member, prefix, description)
        raise GenerationError(f"Unsupported member kind {member.kind!r}", member=description)

    def _prefixes(
        self, interface: InterfaceSpecification
    ) -> tuple[list[str | None], dict[int, GenerationError]]:
        """Variable prefixes for every member (None for properties).

        Members repeating an earlier declaration get no prefix; their errors
        are returned by member index so the member error policy applies.
        """
        members = interface.members
        result: list[str | None] = [None] * len(members)
        rejected: dict[int, GenerationError] = {}

        function_indexes = [i for i, m in enumerate(members) if isinstance(m, FunctionMember)]
        if self.config.overloads == OverloadPolicy.DISAMBIGUATE:
            function_indexes = _drop_repeated(members, function_indexes, overload_key, rejected)
        functions = [members[i] for i in function_indexes]
        for i, prefix in zip(function_indexes, resolve_prefixes(functions, self.config.overloads)):  # type: ignore[arg-type]
            result[i] = prefix

        subscript_indexes = [i for i, m in enumerate(members) if isinstance(m, SubscriptMember)]
        subscript_indexes = _drop_repeated(members, subscript_indexes, _subscript_key, rejected)
        plain = {i: subscript_prefix(members[i].parameters) for i in subscript_indexes}  # type: ignore[union-attr]
        for i, prefix in plain.items():
            if list(plain.values()).count(prefix) > 1:
                # Subscripts overloaded on return type only
                prefix += type_identifier(members[i].return_type)  # type: ignore[union-attr]
            result[i] = prefix

        subscript_prefixes = [result[i] for i in subscript_indexes]
        if len(set(subscript_prefixes)) < len(subscript_prefixes):
            member = describe_member(members[subscript_indexes[0]])
            raise GenerationError("Subscript prefixes collide", member=member)

        return result, rejected

    def _check_duplicate_property(self, member: PropertyMember, seen: set[str]) -> None:
        if member.name in seen:
            description = describe_member(member)
            ctx = DiagnosticContext(member=description)
            ctx.add_check(f"property {member.name}", False, "declared more than once")
            raise GenerationError(
                f"Duplicate property {member.name!r}", member=description, context=ctx
            )
        seen.add(member.name)

    def _guard(self, interface: InterfaceSpecification, guard: str | None) -> str | None:
        return guard or interface.guard or self.config.guard


def generate_spy(
    interface: InterfaceSpecification,
    guard: str | None = None,
    config: GeneratorConfig | None = None,
) -> SpyDeclaration:
    """Generate the spy for ``interface`` with a one-off generator."""
    return SpyGenerator(config).generate(interface, guard)


def _subscript_key(member: SubscriptMember) -> str:
    return subscript_prefix(member.parameters) + type_identifier(member.return_type)


def _drop_repeated(
    members: Sequence[Member],
    indexes: list[int],
    key: Callable[[Any], str],
    rejected: dict[int, GenerationError],
) -> list[int]:
    """Keep the first member of each signature; record the repeats in ``rejected``."""
    first: dict[str, int] = {}
    kept: list[int] = []
    for index in indexes:
        signature = key(members[index])
        if signature not in first:
            first[signature] = index
            kept.append(index)
            continue
        description = describe_member(members[index])
        ctx = DiagnosticContext(member=description)
        ctx.add_check(describe_member(members[first[signature]]), False, f"same signature {signature}")
        ctx.add_suggestion("Remove the repeated declaration")
        rejected[index] = GenerationError(
            f"Duplicate {members[index].kind} declaration", member=description, context=ctx
        )
    return kept
