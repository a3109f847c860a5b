"""A Python interpreter for generated spies.

``SpyInstance`` runs the statements of a SpyDeclaration against its own
field storage, so the behavior of a generated spy can be exercised without
a Swift toolchain::

    spy = SpyInstance(generate_spy(interface))
    spy.set("fetchIdReturnValue", "ok")
    assert spy.call("fetchId", 7) == "ok"
    assert spy.get("fetchIdReceivedInvocations") == [7]
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Generator, Sequence
from typing import Any

from swiftspy.compiler.ir import ImplicitlyUnwrappedType, Parameter, SemanticType, is_optional
from swiftspy.emitters.swift import render_type
from swiftspy.generator.calls import argument_type
from swiftspy.generator.declarations import (
    Append,
    Assign,
    ClosureCall,
    ComputedProperty,
    Evaluate,
    Expression,
    ForcedCast,
    FunctionImplementation,
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
from swiftspy.runtime.conformance import Bindings, conforms
from swiftspy.runtime.faults import SpyFault, TypeMismatchFault, UnwrapFault

logger = logging.getLogger(__name__)

# Interpreter steps yield awaitables and receive their results
Step = Generator[Awaitable[Any], Any, Any]


class _NoReturn:
    """Marker for a statement block that fell off the end."""


NO_RETURN = _NoReturn()


def default_value(field: StoredField) -> Any:
    """Initial Python value for a stored field."""
    match field.default_value:
        case None:
            return None
        case "0":
            return 0
        case "[]":
            return []
    raise ValueError(f"Unsupported default literal {field.default_value!r} for {field.name}")


class SpyInstance:
    """One live instance of a generated spy."""

    def __init__(self, spy: SpyDeclaration):
        self.spy = spy
        self._fields: dict[str, StoredField] = {}
        self._computed: dict[str, ComputedProperty] = {}
        self._functions: dict[str, FunctionImplementation] = {}
        self._subscripts: list[SubscriptImplementation] = []
        self._storage: dict[str, Any] = {}

        for declaration in spy.members:
            match declaration:
                case StoredField(name=name):
                    self._fields[name] = declaration
                    self._storage[name] = default_value(declaration)
                case ComputedProperty(name=name):
                    self._computed[name] = declaration
                case FunctionImplementation(signature=signature):
                    self._functions[signature.prefix] = declaration
                case SubscriptImplementation():
                    self._subscripts.append(declaration)

    def __repr__(self) -> str:
        return f"SpyInstance({self.spy.name})"

    # =========================================================================
    # Properties and fields
    # =========================================================================

    @property
    def field_names(self) -> list[str]:
        """Stored and computed property names, in declaration order."""
        return [*self._fields, *self._computed]

    def get(self, name: str) -> Any:
        """Read a stored field or run a computed property getter."""
        if name in self._fields:
            return self._storage[name]
        if name in self._computed:
            return self._drive(self._execute(self._computed[name].getter_body, {}, None))
        raise AttributeError(f"{self.spy.name} has no member {name!r}")

    def set(self, name: str, value: Any) -> None:
        """Assign a stored field or run a computed property setter.

        Raises:
            TypeMismatchFault: If ``value`` does not conform to the field type.
        """
        if name in self._fields:
            self._store(name, value)
            return
        if name in self._computed:
            prop = self._computed[name]
            if prop.setter_body is None:
                raise AttributeError(f"{name!r} is a get-only property")
            self._check(value, prop.type, None, f"assigning {name}")
            self._drive(self._execute(prop.setter_body, {"newValue": value}, None))
            return
        raise AttributeError(f"{self.spy.name} has no member {name!r}")

    def _store(self, name: str, value: Any) -> None:
        self._check(value, self._fields[name].type, None, f"assigning {name}")
        self._storage[name] = value

    # =========================================================================
    # Functions
    # =========================================================================

    def call(self, prefix: str, *args: Any, bindings: Bindings | None = None) -> Any:
        """Invoke a synchronous spied function.

        Args:
            prefix: The function's variable prefix, e.g. ``fetchId``.
            *args: Positional arguments, one per declared parameter.
            bindings: Python types for the function's generic parameters,
                used when checking forced casts.

        Raises:
            SpyFault: If the function is async (use ``acall``).
        """
        implementation = self._function(prefix)
        if implementation.signature.is_async:
            raise SpyFault(f"{prefix} is async; use acall()")
        scope = self._bind(implementation.signature.parameters, args, prefix, bindings)
        logger.debug("%s.%s%r", self.spy.name, prefix, args)
        return self._result(self._drive(self._execute(implementation.statements, scope, bindings)))

    async def acall(self, prefix: str, *args: Any, bindings: Bindings | None = None) -> Any:
        """Invoke a spied function, awaiting closures of async functions."""
        implementation = self._function(prefix)
        scope = self._bind(implementation.signature.parameters, args, prefix, bindings)
        logger.debug("%s.%s%r (async)", self.spy.name, prefix, args)
        result = await self._drive_async(self._execute(implementation.statements, scope, bindings))
        return self._result(result)

    def _function(self, prefix: str) -> FunctionImplementation:
        try:
            return self._functions[prefix]
        except KeyError:
            raise AttributeError(f"{self.spy.name} has no function with prefix {prefix!r}") from None

    # =========================================================================
    # Subscripts
    # =========================================================================

    def subscript_get(self, *index: Any, bindings: Bindings | None = None) -> Any:
        """Run the getter of the subscript matching ``index``."""
        subscript = self._subscript(index, bindings)
        scope = self._bind(subscript.parameters, index, "subscript", bindings)
        return self._result(self._drive(self._execute(subscript.getter.statements, scope, bindings)))

    def subscript_set(self, *index_and_value: Any, bindings: Bindings | None = None) -> None:
        """Run the setter of the subscript matching the index; the last argument is the new value."""
        if not index_and_value:
            raise TypeError("subscript_set() needs the index arguments and a value")
        *index, value = index_and_value
        subscript = self._subscript(tuple(index), bindings)
        if subscript.setter is None:
            raise AttributeError("Subscript is get-only")
        parameters = subscript.setter.signature.parameters
        scope = self._bind(parameters, (*index, value), "subscript", bindings)
        self._drive(self._execute(subscript.setter.statements, scope, bindings))

    def _subscript(self, index: tuple[Any, ...], bindings: Bindings | None) -> SubscriptImplementation:
        for subscript in self._subscripts:
            if len(subscript.parameters) == len(index) and all(
                conforms(arg, p.type, bindings) for arg, p in zip(index, subscript.parameters)
            ):
                return subscript
        raise TypeError(f"No subscript of {self.spy.name} accepts {index!r}")

    # =========================================================================
    # Interpreter
    # =========================================================================

    def _bind(
        self,
        parameters: Sequence[Parameter],
        args: Sequence[Any],
        where: str,
        bindings: Bindings | None,
    ) -> dict[str, Any]:
        if len(args) != len(parameters):
            raise TypeError(f"{where} takes {len(parameters)} arguments ({len(args)} given)")
        for parameter, arg in zip(parameters, args):
            site = f"argument {parameter.internal_name} of {where}"
            self._check(arg, argument_type(parameter), bindings, site)
        return {p.internal_name: arg for p, arg in zip(parameters, args)}

    def _execute(
        self, statements: Sequence[Statement], scope: dict[str, Any], bindings: Bindings | None
    ) -> Step:
        for statement in statements:
            match statement:
                case Increment(target=target):
                    self._storage[target] += 1
                case Assign(target=target, value=value):
                    result = yield from self._evaluate(value, scope, bindings)
                    if target in self._fields:
                        self._storage[target] = result
                    else:
                        scope[target] = result
                case Append(target=target, value=value):
                    result = yield from self._evaluate(value, scope, bindings)
                    self._storage[target].append(result)
                case ThrowIfSet(field=field):
                    error = self._storage[field]
                    if error is not None:
                        raise error
                case IfSet(field=field, then=then, otherwise=otherwise):
                    branch = then if self._storage[field] is not None else otherwise
                    result = yield from self._execute(branch, scope, bindings)
                    if result is not NO_RETURN:
                        return result
                case Return(value=value):
                    return (yield from self._evaluate(value, scope, bindings))
                case Evaluate(value=value):
                    yield from self._evaluate(value, scope, bindings)
                case _:
                    raise SpyFault(f"Cannot interpret {statement!r}")
        return NO_RETURN

    def _evaluate(self, expression: Expression, scope: dict[str, Any], bindings: Bindings | None) -> Step:
        match expression:
            case Reference(name=name):
                return self._read(name, scope)
            case TupleLiteral(elements=elements):
                return tuple(self._read(e.name, scope) for e in elements)
            case IsPositive(operand=operand):
                return self._read(operand.name, scope) > 0
            case ClosureCall():
                closure = self._storage[expression.closure]
                if closure is None:
                    if expression.optional_chaining:
                        return None
                    raise UnwrapFault(expression.closure)
                arguments = [self._read(a.name, scope) for a in expression.arguments]
                result = closure(*arguments)
                if expression.is_async and inspect.isawaitable(result):
                    result = yield result
                return result
            case ForcedCast(value=value, type=type_):
                if isinstance(value, Reference) and is_optional(type_):
                    # Casting to an optional type does not unwrap first
                    result = self._storage.get(value.name, scope.get(value.name))
                else:
                    result = yield from self._evaluate(value, scope, bindings)
                self._check(result, type_, bindings, "forced cast")
                return result
        raise SpyFault(f"Cannot evaluate {expression!r}")

    def _read(self, name: str, scope: dict[str, Any]) -> Any:
        if name in scope:
            return scope[name]
        if name in self._fields:
            value = self._storage[name]
            if value is None and isinstance(self._fields[name].type, ImplicitlyUnwrappedType):
                raise UnwrapFault(name)
            return value
        if name in self._computed:
            return self.get(name)
        raise SpyFault(f"Unknown name {name!r} in {self.spy.name}")

    def _check(
        self, value: Any, type_: SemanticType, bindings: Bindings | None, site: str
    ) -> None:
        if not conforms(value, type_, bindings):
            raise TypeMismatchFault(value, render_type(type_), site)

    def _result(self, value: Any) -> Any:
        return None if value is NO_RETURN else value

    # =========================================================================
    # Drivers
    # =========================================================================

    def _drive(self, step: Step) -> Any:
        """Run an interpreter step that must not suspend."""
        try:
            awaitable = next(step)
        except StopIteration as stop:
            return stop.value
        step.close()
        if inspect.iscoroutine(awaitable):
            awaitable.close()
        raise SpyFault("A closure of a synchronous member returned an awaitable")

    async def _drive_async(self, step: Step) -> Any:
        """Run an interpreter step, awaiting whatever it suspends on."""
        try:
            awaitable = next(step)
            while True:
                try:
                    result = await awaitable
                except BaseException as e:
                    awaitable = step.throw(e)
                else:
                    awaitable = step.send(result)
        except StopIteration as stop:
            return stop.value
