"""Intermediate Representation (IR) models for SwiftSpy.

The IR is the structured form of a Swift protocol that the generator consumes.
The parser produces it from Swift source; it can also be hand-written as JSON
and loaded with ``InterfaceSpecification.model_validate``.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class IRModel(BaseModel):
    """Base for all IR models - immutable value data."""

    model_config = ConfigDict(frozen=True)


# =============================================================================
# Semantic types
# =============================================================================


class NamedType(IRModel):
    """A nominal type such as ``Int``, ``Result<T, Error>`` or ``any Codable``."""

    kind: Literal["named"] = "named"
    name: str  # Possibly dotted, e.g. "Foundation.URL"
    arguments: tuple[SemanticType, ...] = ()
    is_existential: bool = False  # Written as `any Name`


class OptionalType(IRModel):
    """``Wrapped?``"""

    kind: Literal["optional"] = "optional"
    wrapped: SemanticType


class ImplicitlyUnwrappedType(IRModel):
    """``Wrapped!`` - only produced for generated storage."""

    kind: Literal["implicitly_unwrapped"] = "implicitly_unwrapped"
    wrapped: SemanticType


class ArrayType(IRModel):
    """``[Element]``"""

    kind: Literal["array"] = "array"
    element: SemanticType


class DictionaryType(IRModel):
    """``[Key: Value]``"""

    kind: Literal["dictionary"] = "dictionary"
    key: SemanticType
    value: SemanticType


class TupleElement(IRModel):
    """One element of a tuple type, optionally labeled."""

    label: str | None = None
    type: SemanticType


class TupleType(IRModel):
    """``(label: A, B)`` - the empty tuple is ``Void``."""

    kind: Literal["tuple"] = "tuple"
    elements: tuple[TupleElement, ...] = ()


class FunctionType(IRModel):
    """``(A, B) async throws -> R``"""

    kind: Literal["function"] = "function"
    parameters: tuple[SemanticType, ...] = ()
    returns: SemanticType
    is_async: bool = False
    is_throwing: bool = False
    is_escaping: bool = False
    is_sendable: bool = False


class GenericPlaceholder(IRModel):
    """A reference to a function-level generic parameter.

    ``name`` may be a dotted member type such as ``C.Element``; the first
    component is the generic parameter.
    """

    kind: Literal["placeholder"] = "placeholder"
    name: str


class ErasedAny(IRModel):
    """The erased ``Any`` that replaces generic placeholders in spy storage."""

    kind: Literal["erased"] = "erased"


SemanticType = Annotated[
    Union[
        NamedType,
        OptionalType,
        ImplicitlyUnwrappedType,
        ArrayType,
        DictionaryType,
        TupleType,
        FunctionType,
        GenericPlaceholder,
        ErasedAny,
    ],
    Field(discriminator="kind"),
]

VOID = NamedType(name="Void")
ERASED = ErasedAny()


def is_void(type_: SemanticType | None) -> bool:
    """Whether a return type means "returns nothing"."""
    if type_ is None:
        return True
    if isinstance(type_, NamedType):
        return type_.name == "Void" and not type_.arguments
    if isinstance(type_, TupleType):
        return not type_.elements
    return False


def is_optional(type_: SemanticType) -> bool:
    """Whether a type is already optional (``T?`` or ``T!``)."""
    return isinstance(type_, (OptionalType, ImplicitlyUnwrappedType))


# =============================================================================
# Members
# =============================================================================


class GenericRequirement(IRModel):
    """A generic constraint: `T: Codable` or `T.Element == Int`."""

    subject: SemanticType
    relation: Literal[":", "=="] = ":"
    constraint: SemanticType


class Parameter(IRModel):
    """A function or subscript parameter."""

    label: str | None = None  # External name; None or "_" means unlabeled
    internal_name: str
    type: SemanticType
    is_closure: bool = False  # Type is itself a function type
    is_variadic: bool = False  # Declared as `T...`

    @property
    def has_label(self) -> bool:
        return self.label is not None and self.label != "_"


class PropertyMember(IRModel):
    """``var name: Type { get [set] }``"""

    kind: Literal["property"] = "property"
    name: str
    type: SemanticType
    is_settable: bool = False


class FunctionMember(IRModel):
    """``func name<Generics>(params) [async] [throws] [-> ReturnType]``"""

    kind: Literal["function"] = "function"
    name: str
    parameters: tuple[Parameter, ...] = ()
    generic_parameters: tuple[str, ...] = ()
    generic_requirements: tuple[GenericRequirement, ...] = ()
    is_async: bool = False
    is_throwing: bool = False
    return_type: SemanticType | None = None  # None means Void


class SubscriptMember(IRModel):
    """``subscript(params) -> ReturnType { get [set] }``"""

    kind: Literal["subscript"] = "subscript"
    parameters: tuple[Parameter, ...] = ()
    return_type: SemanticType
    is_settable: bool = False


Member = Annotated[
    Union[PropertyMember, FunctionMember, SubscriptMember],
    Field(discriminator="kind"),
]


class InterfaceSpecification(IRModel):
    """Root document - one annotated protocol."""

    version: str = "0.1"
    name: str
    members: tuple[Member, ...] = ()
    generic_parameters: tuple[str, ...] = ()  # `associatedtype` names, never erased
    generic_requirements: tuple[GenericRequirement, ...] = ()
    access_level: str | None = None  # e.g. "public"; forwarded to the emitter
    guard: str | None = None  # From @Spyable(behindPreprocessorFlag:)


for _model in (
    NamedType,
    OptionalType,
    ImplicitlyUnwrappedType,
    ArrayType,
    DictionaryType,
    TupleElement,
    TupleType,
    FunctionType,
    GenericRequirement,
    Parameter,
    PropertyMember,
    FunctionMember,
    SubscriptMember,
    InterfaceSpecification,
):
    _model.model_rebuild()
