"""Swift emitter for SwiftSpy.

Renders a SpyDeclaration as a Swift class, optionally wrapped in an
``#if FLAG ... #endif`` conditional-compilation block.
"""

from __future__ import annotations

import logging
from typing import Sequence

from swiftspy.compiler.ir import (
    ArrayType,
    DictionaryType,
    ErasedAny,
    FunctionType,
    GenericPlaceholder,
    GenericRequirement,
    ImplicitlyUnwrappedType,
    NamedType,
    OptionalType,
    Parameter,
    SemanticType,
    TupleType,
    is_void,
)
from swiftspy.config import EmitterConfig
from swiftspy.emitters.base import Emitter, SourceWriter
from swiftspy.generator.declarations import (
    Append,
    Assign,
    ClosureCall,
    ComputedProperty,
    Evaluate,
    Expression,
    ForcedCast,
    FunctionImplementation,
    GeneratedDeclaration,
    IfSet,
    Increment,
    IsPositive,
    Reference,
    Return,
    SpyDeclaration,
    Statement,
    StoredField,
    SubscriptImplementation,
    ThrowIfSet,
    TupleLiteral,
)

logger = logging.getLogger(__name__)

PUBLIC_LEVELS = ("public", "open")


# =============================================================================
# Types
# =============================================================================


def render_type(type_: SemanticType) -> str:
    """Render a semantic type as Swift type syntax."""
    match type_:
        case NamedType(name=name, arguments=arguments, is_existential=existential):
            text = name
            if arguments:
                text += "<" + ", ".join(render_type(a) for a in arguments) + ">"
            return f"any {text}" if existential else text
        case OptionalType(wrapped=wrapped):
            return _wrapped(wrapped) + "?"
        case ImplicitlyUnwrappedType(wrapped=wrapped):
            return _wrapped(wrapped) + "!"
        case ArrayType(element=element):
            return f"[{render_type(element)}]"
        case DictionaryType(key=key, value=value):
            return f"[{render_type(key)}: {render_type(value)}]"
        case TupleType(elements=elements):
            if not elements:
                return "Void"
            parts = [
                f"{e.label}: {render_type(e.type)}" if e.label else render_type(e.type)
                for e in elements
            ]
            return "(" + ", ".join(parts) + ")"
        case FunctionType():
            return _render_function_type(type_)
        case GenericPlaceholder(name=name):
            return name
        case ErasedAny():
            return "Any"
    raise TypeError(f"Unsupported type: {type_!r}")


def _wrapped(type_: SemanticType) -> str:
    """Parenthesize types that would bind wrongly before a `?` or `!`."""
    text = render_type(type_)
    if isinstance(type_, FunctionType):
        return f"({text})"
    if isinstance(type_, NamedType) and type_.is_existential:
        return f"({text})"
    return text


def _render_function_type(type_: FunctionType) -> str:
    attributes = ""
    if type_.is_escaping:
        attributes += "@escaping "
    if type_.is_sendable:
        attributes += "@Sendable "
    effects = ""
    if type_.is_async:
        effects += " async"
    if type_.is_throwing:
        effects += " throws"
    parameters = ", ".join(render_type(p) for p in type_.parameters)
    return f"{attributes}({parameters}){effects} -> {render_type(type_.returns)}"


def render_requirements(requirements: Sequence[GenericRequirement]) -> str:
    """`` where T: Codable, T.Element == Int`` (empty when there are none)."""
    if not requirements:
        return ""
    clauses = [
        f"{render_type(r.subject)}{':' if r.relation == ':' else ' =='} {render_type(r.constraint)}"
        for r in requirements
    ]
    return " where " + ", ".join(clauses)


def render_parameter(parameter: Parameter, in_subscript: bool = False) -> str:
    """Render ``label name: Type`` with the function/subscript label rules."""
    type_text = render_type(parameter.type)
    if parameter.is_variadic:
        type_text += "..."

    if in_subscript:
        # A lone name in a subscript declares no argument label
        if parameter.label is None:
            names = parameter.internal_name
        else:
            names = f"{parameter.label} {parameter.internal_name}"
    elif parameter.label == parameter.internal_name:
        names = parameter.internal_name
    elif parameter.label is None:
        names = f"_ {parameter.internal_name}"
    else:
        names = f"{parameter.label} {parameter.internal_name}"
    return f"{names}: {type_text}"


# =============================================================================
# Expressions and statements
# =============================================================================


def render_expression(expression: Expression) -> str:
    match expression:
        case Reference(name=name):
            return name
        case TupleLiteral(elements=elements):
            return "(" + ", ".join(render_expression(e) for e in elements) + ")"
        case IsPositive(operand=operand):
            return f"{render_expression(operand)} > 0"
        case ClosureCall():
            keywords = ""
            if expression.is_throwing:
                keywords += "try "
            if expression.is_async:
                keywords += "await "
            unwrap = "?" if expression.optional_chaining else "!"
            arguments = ", ".join(render_expression(a) for a in expression.arguments)
            return f"{keywords}{expression.closure}{unwrap}({arguments})"
        case ForcedCast(value=value, type=type_):
            return f"{render_expression(value)} as! {render_type(type_)}"
    raise TypeError(f"Unsupported expression: {expression!r}")


def write_statements(writer: SourceWriter, statements: Sequence[Statement]) -> None:
    for statement in statements:
        match statement:
            case Increment(target=target):
                writer.line(f"{target} += 1")
            case Assign(target=target, value=value):
                writer.line(f"{target} = {render_expression(value)}")
            case Append(target=target, value=value):
                writer.line(f"{target}.append({render_expression(value)})")
            case ThrowIfSet(field=field):
                with writer.block(f"if let error = {field} {{"):
                    writer.line("throw error")
            case IfSet(field=field, then=then, otherwise=otherwise):
                if otherwise:
                    with writer.block(f"if {field} != nil {{", "} else {"):
                        write_statements(writer, then)
                    with writer.indented():
                        write_statements(writer, otherwise)
                    writer.line("}")
                else:
                    with writer.block(f"if {field} != nil {{"):
                        write_statements(writer, then)
            case Return(value=value):
                writer.line(f"return {render_expression(value)}")
            case Evaluate(value=value):
                writer.line(render_expression(value))
            case _:
                raise TypeError(f"Unsupported statement: {statement!r}")


# =============================================================================
# Emitter
# =============================================================================


class SwiftEmitter(Emitter):
    """Emits spies as Swift source."""

    extension = ".swift"

    def __init__(self, config: EmitterConfig | None = None):
        """Initialize the Swift emitter.

        Args:
            config: Emitter configuration. If None, uses defaults.
        """
        self.config = config or EmitterConfig()

    def emit(self, spy: SpyDeclaration) -> str:
        writer = SourceWriter(self.config.indent_width)

        if self.config.header:
            writer.line(f"// {self.config.header}")
        if spy.guard:
            writer.line(f"#if {spy.guard}")

        with writer.block(self._class_header(spy)):
            member_access = self._member_access(spy)
            if member_access:
                writer.line(f"{member_access}init() {{}}")
            for declaration in spy.members:
                self._write_declaration(writer, declaration, member_access)

        if spy.guard:
            writer.line("#endif")

        logger.debug("Emitted %s (%d declarations)", spy.name, len(spy.members))
        return writer.getvalue()

    def _class_header(self, spy: SpyDeclaration) -> str:
        parts = []
        if spy.access_level:
            parts.append(spy.access_level)
        if self.config.final_class:
            parts.append("final")
        parts.append("class")

        name = spy.name
        if spy.generic_parameters:
            name += "<" + ", ".join(spy.generic_parameters) + ">"
        parts.append(f"{name}: {spy.conforms_to}{render_requirements(spy.generic_requirements)}")
        return " ".join(parts) + " {"

    def _member_access(self, spy: SpyDeclaration) -> str:
        if spy.access_level in PUBLIC_LEVELS:
            return "public "
        return ""

    def _write_declaration(
        self, writer: SourceWriter, declaration: GeneratedDeclaration, access: str
    ) -> None:
        match declaration:
            case StoredField(name=name, type=type_, default_value=default):
                suffix = f" = {default}" if default is not None else ""
                writer.line(f"{access}var {name}: {render_type(type_)}{suffix}")
            case ComputedProperty():
                self._write_computed_property(writer, declaration, access)
            case FunctionImplementation():
                self._write_function(writer, declaration, access)
            case SubscriptImplementation():
                self._write_subscript(writer, declaration, access)
            case _:
                raise TypeError(f"Unsupported declaration: {declaration!r}")

    def _write_computed_property(
        self, writer: SourceWriter, prop: ComputedProperty, access: str
    ) -> None:
        with writer.block(f"{access}var {prop.name}: {render_type(prop.type)} {{"):
            if prop.setter_body is None:
                write_statements(writer, prop.getter_body)
                return
            with writer.block("get {"):
                write_statements(writer, prop.getter_body)
            with writer.block("set {"):
                write_statements(writer, prop.setter_body)

    def _write_function(
        self, writer: SourceWriter, function: FunctionImplementation, access: str
    ) -> None:
        signature = function.signature
        generics = ""
        if signature.generic_parameters:
            generics = "<" + ", ".join(signature.generic_parameters) + ">"
        parameters = ", ".join(render_parameter(p) for p in signature.parameters)

        header = f"{access}func {signature.name}{generics}({parameters})"
        if signature.is_async:
            header += " async"
        if signature.is_throwing:
            header += " throws"
        if not is_void(signature.return_type):
            assert signature.return_type is not None
            header += f" -> {render_type(signature.return_type)}"
        header += render_requirements(signature.generic_requirements)

        with writer.block(header + " {"):
            write_statements(writer, function.statements)

    def _write_subscript(
        self, writer: SourceWriter, subscript: SubscriptImplementation, access: str
    ) -> None:
        parameters = ", ".join(render_parameter(p, in_subscript=True) for p in subscript.parameters)
        header = f"{access}subscript({parameters}) -> {render_type(subscript.return_type)} {{"
        with writer.block(header):
            with writer.block("get {"):
                write_statements(writer, subscript.getter.statements)
            if subscript.setter is not None:
                with writer.block("set {"):
                    write_statements(writer, subscript.setter.statements)
