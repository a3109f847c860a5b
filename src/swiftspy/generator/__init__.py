"""SwiftSpy generator - turns interface IR into spy declarations."""

from swiftspy.generator.declarations import (
    Append,
    Assign,
    ClosureCall,
    ComputedProperty,
    Evaluate,
    ForcedCast,
    FunctionImplementation,
    FunctionSignature,
    GeneratedDeclaration,
    IfSet,
    Increment,
    IsPositive,
    Reference,
    Return,
    SpyDeclaration,
    StoredField,
    SubscriptImplementation,
    ThrowIfSet,
    TupleLiteral,
)
from swiftspy.generator.orchestrator import GenerationReport, SpyGenerator, generate_spy

__all__ = [
    # Declarations
    "Append",
    "Assign",
    "ClosureCall",
    "ComputedProperty",
    "Evaluate",
    "ForcedCast",
    "FunctionImplementation",
    "FunctionSignature",
    "GeneratedDeclaration",
    "IfSet",
    "Increment",
    "IsPositive",
    "Reference",
    "Return",
    "SpyDeclaration",
    "StoredField",
    "SubscriptImplementation",
    "ThrowIfSet",
    "TupleLiteral",
    # Orchestration
    "GenerationReport",
    "SpyGenerator",
    "generate_spy",
]
