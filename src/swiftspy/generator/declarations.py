"""Output models - the structured declarations a spy is made of.

The emitter turns these into Swift source; the runtime interprets them.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from swiftspy.compiler.ir import GenericRequirement, Parameter, SemanticType


class DeclarationModel(BaseModel):
    """Base for generated models - immutable value data."""

    model_config = ConfigDict(frozen=True)


# =============================================================================
# Expressions
# =============================================================================


class Reference(DeclarationModel):
    """A field, parameter or ``newValue`` by name."""

    kind: Literal["reference"] = "reference"
    name: str


class TupleLiteral(DeclarationModel):
    """``(a, b, c)`` built from references."""

    kind: Literal["tuple"] = "tuple"
    elements: tuple[Reference, ...]


class IsPositive(DeclarationModel):
    """``operand > 0``"""

    kind: Literal["is_positive"] = "is_positive"
    operand: Reference


class ClosureCall(DeclarationModel):
    """``try await closure!(args)`` or ``closure?(args)``"""

    kind: Literal["closure_call"] = "closure_call"
    closure: str
    arguments: tuple[Reference, ...] = ()
    is_async: bool = False
    is_throwing: bool = False
    optional_chaining: bool = False  # `?` instead of `!`


class ForcedCast(DeclarationModel):
    """``value as! Type`` - the consumption point of an erased value."""

    kind: Literal["forced_cast"] = "forced_cast"
    value: Expression
    type: SemanticType


Expression = Annotated[
    Union[Reference, TupleLiteral, IsPositive, ClosureCall, ForcedCast],
    Field(discriminator="kind"),
]


# =============================================================================
# Statements
# =============================================================================


class Increment(DeclarationModel):
    """``target += 1``"""

    kind: Literal["increment"] = "increment"
    target: str


class Assign(DeclarationModel):
    """``target = value``"""

    kind: Literal["assign"] = "assign"
    target: str
    value: Expression


class Append(DeclarationModel):
    """``target.append(value)``"""

    kind: Literal["append"] = "append"
    target: str
    value: Expression


class ThrowIfSet(DeclarationModel):
    """``if let field { throw field }``"""

    kind: Literal["throw_if_set"] = "throw_if_set"
    field: str


class IfSet(DeclarationModel):
    """``if field != nil { then } else { otherwise }``"""

    kind: Literal["if_set"] = "if_set"
    field: str
    then: tuple[Statement, ...]
    otherwise: tuple[Statement, ...] = ()


class Return(DeclarationModel):
    """``return value``"""

    kind: Literal["return"] = "return"
    value: Expression


class Evaluate(DeclarationModel):
    """An expression evaluated for its side effects."""

    kind: Literal["evaluate"] = "evaluate"
    value: Expression


Statement = Annotated[
    Union[Increment, Assign, Append, ThrowIfSet, IfSet, Return, Evaluate],
    Field(discriminator="kind"),
]


# =============================================================================
# Declarations
# =============================================================================


class StoredField(DeclarationModel):
    """``var name: Type = default``"""

    kind: Literal["stored_field"] = "stored_field"
    name: str
    type: SemanticType
    default_value: str | None = None  # Swift literal, e.g. "0" or "[]"


class ComputedProperty(DeclarationModel):
    """``var name: Type { get { ... } set { ... } }``"""

    kind: Literal["computed_property"] = "computed_property"
    name: str
    type: SemanticType
    getter_body: tuple[Statement, ...]
    setter_body: tuple[Statement, ...] | None = None


class FunctionSignature(DeclarationModel):
    """The declared shape of a spied function, as it appears in the protocol."""

    name: str
    prefix: str  # Variable prefix shared by this function's fields
    parameters: tuple[Parameter, ...] = ()
    generic_parameters: tuple[str, ...] = ()
    generic_requirements: tuple[GenericRequirement, ...] = ()
    is_async: bool = False
    is_throwing: bool = False
    return_type: SemanticType | None = None


class FunctionImplementation(DeclarationModel):
    """A spied function body."""

    kind: Literal["function_implementation"] = "function_implementation"
    signature: FunctionSignature
    statements: tuple[Statement, ...]


class SubscriptImplementation(DeclarationModel):
    """A spied subscript - getter and optional setter bodies."""

    kind: Literal["subscript_implementation"] = "subscript_implementation"
    parameters: tuple[Parameter, ...]
    return_type: SemanticType
    getter: FunctionImplementation
    setter: FunctionImplementation | None = None


GeneratedDeclaration = Annotated[
    Union[StoredField, ComputedProperty, FunctionImplementation, SubscriptImplementation],
    Field(discriminator="kind"),
]


class SpyDeclaration(DeclarationModel):
    """The complete generated spy type."""

    name: str
    conforms_to: str
    generic_parameters: tuple[str, ...] = ()
    generic_requirements: tuple[GenericRequirement, ...] = ()
    members: tuple[GeneratedDeclaration, ...] = ()
    guard: str | None = None
    access_level: str | None = None


for _model in (
    TupleLiteral,
    IsPositive,
    ClosureCall,
    ForcedCast,
    Assign,
    Append,
    IfSet,
    Return,
    Evaluate,
    StoredField,
    ComputedProperty,
    FunctionSignature,
    FunctionImplementation,
    SubscriptImplementation,
    SpyDeclaration,
):
    _model.model_rebuild()
