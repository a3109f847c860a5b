"""SwiftSpy compiler - transforms Swift protocol source to IR."""

from swiftspy.compiler.ir import (
    ArrayType,
    DictionaryType,
    ErasedAny,
    FunctionMember,
    FunctionType,
    GenericPlaceholder,
    GenericRequirement,
    ImplicitlyUnwrappedType,
    InterfaceSpecification,
    Member,
    NamedType,
    OptionalType,
    Parameter,
    PropertyMember,
    SemanticType,
    SubscriptMember,
    TupleElement,
    TupleType,
)
from swiftspy.compiler.parser import SwiftParser, parse, parse_file

__all__ = [
    # IR models
    "ArrayType",
    "DictionaryType",
    "ErasedAny",
    "FunctionMember",
    "FunctionType",
    "GenericPlaceholder",
    "GenericRequirement",
    "ImplicitlyUnwrappedType",
    "InterfaceSpecification",
    "Member",
    "NamedType",
    "OptionalType",
    "Parameter",
    "PropertyMember",
    "SemanticType",
    "SubscriptMember",
    "TupleElement",
    "TupleType",
    # Parser
    "SwiftParser",
    "parse",
    "parse_file",
]
