"""SwiftSpy parser - transforms Swift protocol source into IR.

Uses lark for parsing and transforms the parse tree into Pydantic IR models.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from lark import Lark, Token, Transformer
from lark.exceptions import UnexpectedInput, UnexpectedToken, VisitError
from pydantic import ValidationError

from swiftspy.diagnostics import ParseError

from .ir import (
    ArrayType,
    DictionaryType,
    FunctionMember,
    FunctionType,
    GenericPlaceholder,
    GenericRequirement,
    ImplicitlyUnwrappedType,
    InterfaceSpecification,
    NamedType,
    OptionalType,
    Parameter,
    PropertyMember,
    SemanticType,
    SubscriptMember,
    TupleElement,
    TupleType,
)

logger = logging.getLogger(__name__)

# Load grammar from file adjacent to this module
GRAMMAR_PATH = Path(__file__).parent / "grammar.lark"

SPYABLE_ATTRIBUTE = "@Spyable"
GUARD_ARGUMENT = "behindPreprocessorFlag"


@dataclass
class Attribute:
    """An attribute such as ``@Spyable(behindPreprocessorFlag: "DEBUG")``."""

    name: str
    arguments: dict[str, str] = field(default_factory=dict)


@dataclass
class AssociatedType:
    """``associatedtype Name: Constraint where ...`` - becomes a spy generic parameter."""

    name: str
    requirements: list[GenericRequirement] = field(default_factory=list)


@dataclass
class RawParameter:
    """A parameter before label rules (which differ for functions and subscripts) apply."""

    first_name: str
    second_name: str | None
    type: SemanticType
    is_variadic: bool


@dataclass
class ParenList:
    """The contents of ``( ... )`` in type position - a tuple or function parameter list."""

    elements: list[TupleElement]


# Intermediate holders so parent rules can tell their children apart

@dataclass
class InheritanceList:
    types: list[SemanticType]


@dataclass
class GenericClause:
    parameters: list[tuple[str, list[SemanticType]]]


@dataclass
class GenericArguments:
    types: list[SemanticType]


@dataclass
class ParameterList:
    parameters: list[RawParameter]


@dataclass
class ReturnClause:
    type: SemanticType


def bind_placeholders(type_: SemanticType, names: tuple[str, ...]) -> SemanticType:
    """Replace named references to function generics with GenericPlaceholder."""
    if not names:
        return type_
    match type_:
        case NamedType(name=name, arguments=arguments):
            if name.split(".")[0] in names and not arguments:
                return GenericPlaceholder(name=name)
            return type_.model_copy(
                update={"arguments": tuple(bind_placeholders(a, names) for a in arguments)}
            )
        case OptionalType(wrapped=wrapped):
            return OptionalType(wrapped=bind_placeholders(wrapped, names))
        case ImplicitlyUnwrappedType(wrapped=wrapped):
            return ImplicitlyUnwrappedType(wrapped=bind_placeholders(wrapped, names))
        case ArrayType(element=element):
            return ArrayType(element=bind_placeholders(element, names))
        case DictionaryType(key=key, value=value):
            return DictionaryType(
                key=bind_placeholders(key, names), value=bind_placeholders(value, names)
            )
        case TupleType(elements=elements):
            return TupleType(
                elements=tuple(
                    e.model_copy(update={"type": bind_placeholders(e.type, names)})
                    for e in elements
                )
            )
        case FunctionType(parameters=parameters, returns=returns):
            return type_.model_copy(
                update={
                    "parameters": tuple(bind_placeholders(p, names) for p in parameters),
                    "returns": bind_placeholders(returns, names),
                }
            )
    return type_


def _tokens(items: list[Any], token_type: str) -> list[Token]:
    return [item for item in items if isinstance(item, Token) and item.type == token_type]


def _has_token(items: list[Any], token_type: str) -> bool:
    return bool(_tokens(items, token_type))


def _mentions_self(type_: SemanticType) -> bool:
    return isinstance(type_, NamedType) and type_.name.split(".")[0] == "Self"


class SwiftTransformer(Transformer[Any, Any]):
    """Transform lark parse tree into SwiftSpy IR models."""

    # =========================================================================
    # Document structure
    # =========================================================================

    def start(self, items: list[Any]) -> InterfaceSpecification:
        """Root protocol - collect members, associated types and the guard."""
        name = str(_tokens(items, "NAME")[0])
        access = _tokens(items, "ACCESS")

        guard: str | None = None
        members: list[Any] = []
        generics: list[str] = []
        requirements: list[GenericRequirement] = []

        for item in items:
            if isinstance(item, Attribute) and item.name == SPYABLE_ATTRIBUTE:
                guard = item.arguments.get(GUARD_ARGUMENT)
            elif isinstance(item, AssociatedType):
                generics.append(item.name)
                requirements.extend(item.requirements)
            elif isinstance(item, (PropertyMember, FunctionMember, SubscriptMember)):
                members.append(item)
            elif isinstance(item, list) and all(isinstance(r, GenericRequirement) for r in item):
                # Protocol where clause; requirements on Self do not carry over to the spy
                requirements.extend(r for r in item if not _mentions_self(r.subject))

        return InterfaceSpecification(
            name=name,
            members=tuple(members),
            generic_parameters=tuple(generics),
            generic_requirements=tuple(requirements),
            access_level=str(access[0]) if access else None,
            guard=guard,
        )

    def import_decl(self, _items: list[Any]) -> None:
        """import Module - ignored."""
        return None

    def inheritance(self, items: list[Any]) -> InheritanceList:
        """: A, B"""
        return InheritanceList(list(items))

    # =========================================================================
    # Attributes
    # =========================================================================

    def attribute(self, items: list[Any]) -> Attribute:
        """@Name(args)"""
        arguments: dict[str, str] = {}
        if len(items) > 1 and isinstance(items[1], dict):
            arguments = items[1]
        return Attribute(name=str(items[0]), arguments=arguments)

    def attribute_arguments(self, items: list[Any]) -> dict[str, str]:
        result: dict[str, str] = {}
        for index, item in enumerate(i for i in items if i is not None):
            key, value = item
            result[key if key is not None else str(index)] = value
        return result

    def named_argument(self, items: list[Any]) -> tuple[str, str]:
        return (str(items[0]), items[1])

    def positional_argument(self, items: list[Any]) -> tuple[None, str]:
        return (None, items[0])

    def STRING(self, token: Token) -> str:
        """Remove quotes from string."""
        return str(token)[1:-1]

    # =========================================================================
    # Members
    # =========================================================================

    def member(self, items: list[Any]) -> Any:
        """Drop the attribute/modifier prefix - it does not affect the spy."""
        return items[-1]

    def member_prefix(self, _items: list[Any]) -> None:
        return None

    def associatedtype_decl(self, items: list[Any]) -> AssociatedType:
        """associatedtype Name [: Constraints] [= Default] [where ...]"""
        name = str(items[0])
        subject = NamedType(name=name)
        requirements: list[GenericRequirement] = []
        for item in items[1:]:
            if isinstance(item, InheritanceList):
                requirements.extend(
                    GenericRequirement(subject=subject, constraint=t) for t in item.types
                )
            elif isinstance(item, list):
                requirements.extend(item)
        return AssociatedType(name=name, requirements=requirements)

    def default_type(self, items: list[Any]) -> None:
        """= Default - the spy picks the type through its generic parameter."""
        return None

    def property_decl(self, items: list[Any]) -> PropertyMember:
        """var name: Type { get [set] }"""
        name, type_, accessors = items
        return PropertyMember(name=str(name), type=type_, is_settable="set" in accessors)

    def accessor_block(self, items: list[Any]) -> list[str]:
        return [str(item) for item in items]

    def function_decl(self, items: list[Any]) -> FunctionMember:
        """func name<T>(params) [async] [throws] [-> Type] [where ...]"""
        name = str(items[0])
        generics: list[tuple[str, list[SemanticType]]] = []
        raw_parameters: list[RawParameter] = []
        return_type: SemanticType | None = None
        where: list[GenericRequirement] = []

        for item in items[1:]:
            if isinstance(item, GenericClause):
                generics = item.parameters
            elif isinstance(item, ParameterList):
                raw_parameters = item.parameters
            elif isinstance(item, ReturnClause):
                return_type = item.type
            elif isinstance(item, list):
                where.extend(item)

        names = tuple(n for n, _ in generics)
        # Inline constraints (`<T: Codable>`) come before the where clause
        requirements = [
            GenericRequirement(subject=NamedType(name=generic_name), constraint=c)
            for generic_name, constraints in generics
            for c in constraints
        ]
        requirements.extend(where)

        parameters = [
            self._function_parameter(raw, index) for index, raw in enumerate(raw_parameters)
        ]

        return FunctionMember(
            name=name,
            parameters=tuple(
                p.model_copy(update={"type": bind_placeholders(p.type, names)}) for p in parameters
            ),
            generic_parameters=names,
            generic_requirements=tuple(
                GenericRequirement(
                    subject=bind_placeholders(r.subject, names),
                    relation=r.relation,
                    constraint=bind_placeholders(r.constraint, names),
                )
                for r in requirements
            ),
            is_async=_has_token(items, "ASYNC"),
            is_throwing=_has_token(items, "THROWS"),
            return_type=bind_placeholders(return_type, names) if return_type is not None else None,
        )

    def subscript_decl(self, items: list[Any]) -> SubscriptMember:
        """subscript(params) -> Type { get [set] }"""
        raw_parameters: list[RawParameter] = []
        return_type: SemanticType | None = None
        accessors: list[str] = []

        for item in items:
            if isinstance(item, ParameterList):
                raw_parameters = item.parameters
            elif isinstance(item, ReturnClause):
                return_type = item.type
            elif isinstance(item, list) and all(isinstance(a, str) for a in item):
                accessors = item

        assert return_type is not None
        return SubscriptMember(
            parameters=tuple(self._subscript_parameter(raw, i) for i, raw in enumerate(raw_parameters)),
            return_type=return_type,
            is_settable="set" in accessors,
        )

    def return_clause(self, items: list[Any]) -> ReturnClause:
        return ReturnClause(items[0])

    def parameter_list(self, items: list[Any]) -> ParameterList:
        return ParameterList(list(items))

    def parameter(self, items: list[Any]) -> RawParameter:
        """[label] name: Type[...]"""
        names = _tokens(items, "NAME")
        type_ = next(item for item in items if not isinstance(item, Token))
        return RawParameter(
            first_name=str(names[0]),
            second_name=str(names[1]) if len(names) > 1 else None,
            type=type_,
            is_variadic=_has_token(items, "ELLIPSIS"),
        )

    def _function_parameter(self, raw: RawParameter, index: int) -> Parameter:
        # A single name is both the argument label and the internal name
        if raw.second_name is None:
            label, internal = raw.first_name, raw.first_name
        else:
            label, internal = raw.first_name, raw.second_name
        if internal == "_":
            internal = f"arg{index}"
        return self._make_parameter(label, internal, raw)

    def _subscript_parameter(self, raw: RawParameter, index: int) -> Parameter:
        # Subscript parameters have no argument label unless one is spelled out
        if raw.second_name is None:
            label, internal = None, raw.first_name
        else:
            label, internal = raw.first_name, raw.second_name
        if internal == "_":
            internal = f"index{index}"
        return self._make_parameter(label, internal, raw)

    def _make_parameter(self, label: str | None, internal: str, raw: RawParameter) -> Parameter:
        return Parameter(
            label=label,
            internal_name=internal,
            type=raw.type,
            is_closure=isinstance(raw.type, FunctionType),
            is_variadic=raw.is_variadic,
        )

    # =========================================================================
    # Generics
    # =========================================================================

    def generic_clause(self, items: list[Any]) -> GenericClause:
        return GenericClause(list(items))

    def generic_parameter(self, items: list[Any]) -> tuple[str, list[SemanticType]]:
        """T [: A & B]"""
        constraints = items[1] if len(items) > 1 else []
        return (str(items[0]), constraints)

    def type_composition(self, items: list[Any]) -> list[SemanticType]:
        return list(items)

    def where_clause(self, items: list[Any]) -> list[GenericRequirement]:
        result: list[GenericRequirement] = []
        for item in items:
            result.extend(item)
        return result

    def conformance_requirement(self, items: list[Any]) -> list[GenericRequirement]:
        subject, constraints = items
        return [GenericRequirement(subject=subject, constraint=c) for c in constraints]

    def same_type_requirement(self, items: list[Any]) -> list[GenericRequirement]:
        subject, constraint = items
        return [GenericRequirement(subject=subject, relation="==", constraint=constraint)]

    # =========================================================================
    # Types
    # =========================================================================

    def attributed_type(self, items: list[Any]) -> SemanticType:
        """@escaping @Sendable (A) -> B"""
        attributes = {str(t) for t in _tokens(items, "ATTRIBUTE")}
        type_ = items[-1]
        if isinstance(type_, FunctionType):
            return type_.model_copy(
                update={
                    "is_escaping": "@escaping" in attributes,
                    "is_sendable": "@Sendable" in attributes,
                }
            )
        return type_

    def function_type(self, items: list[Any]) -> FunctionType:
        """(A, B) [async] [throws] -> R"""
        paren: ParenList = items[0]
        return FunctionType(
            parameters=tuple(e.type for e in paren.elements),
            returns=items[-1],
            is_async=_has_token(items, "ASYNC"),
            is_throwing=_has_token(items, "THROWS"),
        )

    def optional_type(self, items: list[Any]) -> OptionalType:
        return OptionalType(wrapped=items[0])

    def implicitly_unwrapped_type(self, items: list[Any]) -> ImplicitlyUnwrappedType:
        return ImplicitlyUnwrappedType(wrapped=items[0])

    def array_type(self, items: list[Any]) -> ArrayType:
        return ArrayType(element=items[0])

    def dictionary_type(self, items: list[Any]) -> DictionaryType:
        return DictionaryType(key=items[0], value=items[1])

    def existential_type(self, items: list[Any]) -> SemanticType:
        """any P"""
        type_ = items[-1]
        if isinstance(type_, NamedType):
            return type_.model_copy(update={"is_existential": True})
        return type_

    def tuple_type(self, items: list[Any]) -> SemanticType:
        """(A) is just A; (a: A, B) is a tuple."""
        paren: ParenList = items[0]
        if len(paren.elements) == 1 and paren.elements[0].label is None:
            return paren.elements[0].type
        return TupleType(elements=tuple(paren.elements))

    def paren_type(self, items: list[Any]) -> ParenList:
        return ParenList([item for item in items if item is not None])

    def labeled_element(self, items: list[Any]) -> TupleElement:
        return TupleElement(label=str(items[0]), type=items[1])

    def unlabeled_element(self, items: list[Any]) -> TupleElement:
        return TupleElement(type=items[0])

    def type_name(self, items: list[Any]) -> SemanticType:
        """Name, Module.Name, Name<Args>"""
        names = [str(t) for t in _tokens(items, "NAME")]
        arguments: tuple[SemanticType, ...] = ()
        if items and isinstance(items[-1], GenericArguments):
            arguments = tuple(items[-1].types)
        name = ".".join(names)
        if name in ("Optional", "Swift.Optional") and len(arguments) == 1:
            return OptionalType(wrapped=arguments[0])
        return NamedType(name=name, arguments=arguments)

    def generic_arguments(self, items: list[Any]) -> GenericArguments:
        return GenericArguments(list(items))


class SwiftParser:
    """Parser for Swift protocol declarations."""

    def __init__(self) -> None:
        """Initialize the parser with the grammar."""
        self._parser = Lark(
            GRAMMAR_PATH.read_text(),
            parser="lalr",
            transformer=SwiftTransformer(),
        )

    def parse(self, text: str) -> InterfaceSpecification:
        """Parse Swift source text into an interface specification.

        Raises:
            ParseError: If the source is outside the accepted subset.
        """
        try:
            interface = self._parser.parse(text)
        except UnexpectedToken as e:
            if e.token.type == "$END":
                raise ParseError("Unexpected end of input") from e
            raise ParseError(f"Unexpected {e.token!s}", line=e.line, column=e.column) from e
        except UnexpectedInput as e:
            raise ParseError(
                "Unsupported or malformed protocol declaration", line=e.line, column=e.column
            ) from e
        except ValidationError as e:
            raise ParseError(f"Invalid declaration: {e}") from e
        except VisitError as e:
            raise ParseError(str(e.orig_exc)) from e.orig_exc
        logger.debug("Parsed protocol %s with %d members", interface.name, len(interface.members))
        return interface  # type: ignore[no-any-return]

    def parse_file(self, path: Path | str) -> InterfaceSpecification:
        """Parse a Swift file into an interface specification."""
        path = Path(path)
        return self.parse(path.read_text())


# Module-level parser instance for convenience
_parser: SwiftParser | None = None


def get_parser() -> SwiftParser:
    """Get or create the module-level parser instance."""
    global _parser
    if _parser is None:
        _parser = SwiftParser()
    return _parser


def parse(text: str) -> InterfaceSpecification:
    """Parse Swift protocol source into an interface specification."""
    return get_parser().parse(text)


def parse_file(path: Path | str) -> InterfaceSpecification:
    """Parse a Swift protocol file into an interface specification."""
    return get_parser().parse_file(path)
