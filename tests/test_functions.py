"""Tests for the error-throwing, return-value and closure factories and their assembly."""

import pytest

from swiftspy.compiler.ir import ERASED, ImplicitlyUnwrappedType, OptionalType
from swiftspy.diagnostics import GenerationError
from swiftspy.generator import closure as closure_factory
from swiftspy.generator import return_value, throwing
from swiftspy.generator.declarations import (
    ClosureCall,
    Evaluate,
    ForcedCast,
    FunctionImplementation,
    IfSet,
    Increment,
    Reference,
    Return,
    StoredField,
    ThrowIfSet,
)
from swiftspy.generator.functions import build_function, signature_for
from swiftspy.generator.generics import Erasure
from tests.builders import INT, STRING, VOID, array, closure, func, optional, param, placeholder


def _build(function, prefix=None):
    signature = signature_for(function, prefix or function.name)
    return build_function(signature, f"func {function.name}")


class TestThrowing:
    def test_error_field_is_optional_error(self):
        field = throwing.declaration(signature_for(func("save", is_throwing=True), "save"))
        assert field.name == "saveThrowableError"
        assert field.type == OptionalType(wrapped=throwing.ERROR)
        assert field.default_value is None

    def test_guard_comes_right_after_recording(self):
        fields, implementation = _build(func("load", param("id", INT), is_throwing=True), "loadId")
        assert implementation.statements[3] == ThrowIfSet(field="loadIdThrowableError")
        assert "loadIdThrowableError" in [f.name for f in fields]

    def test_non_throwing_has_no_error_field(self):
        fields, implementation = _build(func("ping"))
        assert "pingThrowableError" not in [f.name for f in fields]
        assert not any(isinstance(s, ThrowIfSet) for s in implementation.statements)


class TestReturnValue:
    def test_non_optional_return_is_unwrapped_storage(self):
        signature = signature_for(func("count", returns=INT), "count")
        field = return_value.declaration(signature, Erasure())
        assert field.name == "countReturnValue"
        assert field.type == ImplicitlyUnwrappedType(wrapped=INT)
        assert return_value.statement(signature, Erasure()) == Return(
            value=Reference(name="countReturnValue")
        )

    def test_optional_return_is_stored_as_is(self):
        signature = signature_for(func("find", returns=optional(STRING)), "find")
        assert return_value.declaration(signature, Erasure()).type == optional(STRING)

    def test_erased_return_is_cast(self):
        declared = array(placeholder("T"))
        signature = signature_for(func("wrap", returns=declared, generics=("T",)), "wrap")
        erasure = Erasure(generic_parameters=("T",), engaged=True)

        assert return_value.declaration(signature, erasure).type == ImplicitlyUnwrappedType(
            wrapped=ERASED
        )
        assert return_value.statement(signature, erasure) == Return(
            value=ForcedCast(value=Reference(name="wrapReturnValue"), type=declared)
        )

    def test_void_function_has_no_return_value(self):
        fields, _ = _build(func("reset"))
        assert "resetReturnValue" not in [f.name for f in fields]

    def test_explicit_void_return_counts_as_void(self):
        fields, _ = _build(func("reset", returns=VOID))
        assert "resetReturnValue" not in [f.name for f in fields]


class TestClosure:
    def test_closure_type_keeps_effects(self):
        signature = signature_for(
            func("load", param("id", INT), returns=STRING, is_async=True, is_throwing=True), "loadId"
        )
        field = closure_factory.declaration(signature, Erasure())
        assert field.name == "loadIdClosure"
        assert field.type == OptionalType(
            wrapped=closure(INT, returns=STRING, is_async=True, is_throwing=True)
        )

    def test_unwrapped_return_becomes_optional_in_closure_type(self):
        unwrapped = ImplicitlyUnwrappedType(wrapped=INT)
        signature = signature_for(func("count", returns=unwrapped), "count")
        field = closure_factory.declaration(signature, Erasure())
        assert field.type == OptionalType(wrapped=closure(returns=optional(INT)))
        assert return_value.declaration(signature, Erasure()).type == unwrapped

    def test_void_function_uses_optional_chaining(self):
        signature = signature_for(func("notify", param("message", STRING)), "notifyMessage")
        body = closure_factory.statements(signature, Erasure(), None)
        assert body == [
            Evaluate(
                value=ClosureCall(
                    closure="notifyMessageClosure",
                    arguments=(Reference(name="message"),),
                    optional_chaining=True,
                )
            )
        ]

    def test_closure_falls_back_to_return_value(self):
        _, implementation = _build(func("fetch", param("id", INT), returns=STRING), "fetchId")
        dispatch = implementation.statements[-1]

        assert isinstance(dispatch, IfSet)
        assert dispatch.field == "fetchIdClosure"
        assert dispatch.then == (
            Return(
                value=ClosureCall(closure="fetchIdClosure", arguments=(Reference(name="id"),))
            ),
        )
        assert dispatch.otherwise == (Return(value=Reference(name="fetchIdReturnValue")),)

    def test_erased_closure_result_is_cast(self):
        declared = array(placeholder("T"))
        _, implementation = _build(
            func("wrap", param("data", placeholder("T"), label="_"), returns=declared, generics=("T",))
        )
        dispatch = implementation.statements[-1]
        assert isinstance(dispatch.then[0].value, ForcedCast)
        assert dispatch.then[0].value.type == declared

    def test_erased_closure_type(self):
        fields, _ = _build(
            func(
                "wrap",
                param("data", placeholder("T"), label="_"),
                param("count", INT),
                returns=array(placeholder("T")),
                generics=("T",),
            )
        )
        by_name = {f.name: f for f in fields}
        assert by_name["wrapClosure"].type == OptionalType(
            wrapped=closure(ERASED, INT, returns=ERASED)
        )


class TestAssembly:
    def test_fetch_scenario_fields(self):
        fields, implementation = _build(func("fetch", param("id", INT), returns=STRING), "fetchId")

        assert [(f.name, type(f).__name__) for f in fields] == [
            ("fetchIdCallsCount", "StoredField"),
            ("fetchIdCalled", "ComputedProperty"),
            ("fetchIdReceivedId", "StoredField"),
            ("fetchIdReceivedInvocations", "StoredField"),
            ("fetchIdReturnValue", "StoredField"),
            ("fetchIdClosure", "StoredField"),
        ]
        assert isinstance(implementation, FunctionImplementation)
        assert implementation.statements[0] == Increment(target="fetchIdCallsCount")

    def test_save_scenario_fields(self):
        fields, implementation = _build(func("save", is_async=True, is_throwing=True))

        assert [f.name for f in fields] == [
            "saveCallsCount",
            "saveCalled",
            "saveThrowableError",
            "saveClosure",
        ]
        closure_field = fields[-1]
        assert isinstance(closure_field, StoredField)
        assert closure_field.type == OptionalType(
            wrapped=closure(returns=VOID, is_async=True, is_throwing=True)
        )
        call = implementation.statements[-1].value
        assert call.is_async and call.is_throwing and call.optional_chaining

    def test_colliding_parameter_fails(self):
        with pytest.raises(GenerationError):
            _build(func("log", param("invocations", INT)), "logInvocations")
