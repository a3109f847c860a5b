"""Tests for the spy interpreter."""

import asyncio

import pytest

from swiftspy.generator import generate_spy
from swiftspy.runtime import SpyFault, SpyInstance, TypeMismatchFault, UnwrapFault, conforms
from tests.builders import (
    INT,
    STRING,
    array,
    closure,
    func,
    interface,
    named,
    optional,
    param,
    placeholder,
    prop,
    subscript,
)


def _spy(*members):
    return SpyInstance(generate_spy(interface(*members)))


@pytest.fixture
def fetch_spy():
    return _spy(func("fetch", param("id", INT), returns=STRING))


class TestFunctionCalls:
    def test_fetch_records_and_returns(self, fetch_spy):
        fetch_spy.set("fetchIdReturnValue", "ok")

        assert fetch_spy.get("fetchIdCalled") is False
        assert fetch_spy.call("fetchId", 7) == "ok"
        assert fetch_spy.call("fetchId", 9) == "ok"

        assert fetch_spy.get("fetchIdCallsCount") == 2
        assert fetch_spy.get("fetchIdCalled") is True
        assert fetch_spy.get("fetchIdReceivedId") == 9
        assert fetch_spy.get("fetchIdReceivedInvocations") == [7, 9]

    def test_unconfigured_return_value_faults(self, fetch_spy):
        with pytest.raises(UnwrapFault) as excinfo:
            fetch_spy.call("fetchId", 1)
        assert excinfo.value.field == "fetchIdReturnValue"
        # The call was still recorded before the fault
        assert fetch_spy.get("fetchIdCallsCount") == 1

    def test_closure_takes_precedence(self, fetch_spy):
        fetch_spy.set("fetchIdReturnValue", "stored")
        fetch_spy.set("fetchIdClosure", lambda id: f"closure {id}")
        assert fetch_spy.call("fetchId", 3) == "closure 3"

    def test_wrong_argument_type(self, fetch_spy):
        with pytest.raises(TypeMismatchFault):
            fetch_spy.call("fetchId", "seven")

    def test_wrong_argument_count(self, fetch_spy):
        with pytest.raises(TypeError):
            fetch_spy.call("fetchId")

    def test_misconfigured_return_value(self, fetch_spy):
        with pytest.raises(TypeMismatchFault, match="fetchIdReturnValue"):
            fetch_spy.set("fetchIdReturnValue", 5)

    def test_unknown_function(self, fetch_spy):
        with pytest.raises(AttributeError):
            fetch_spy.call("missing")

    def test_multiple_parameters_record_tuples(self):
        spy = _spy(func("move", param("source", INT, label="from"), param("to", INT)))
        spy.call("moveFromTo", 1, 2)
        spy.call("moveFromTo", 3, 4)

        assert spy.get("moveFromToReceivedSource") == 3
        assert spy.get("moveFromToReceivedTo") == 4
        assert spy.get("moveFromToReceivedInvocations") == [(1, 2), (3, 4)]

    def test_void_function_without_closure(self):
        spy = _spy(func("notify", param("message", STRING)))
        assert spy.call("notifyMessage", "hi") is None
        assert spy.get("notifyMessageReceivedInvocations") == ["hi"]

    def test_closure_parameter_is_recorded(self):
        spy = _spy(func("load", param("completion", closure(INT, is_escaping=True))))
        callback = lambda value: None  # noqa: E731
        spy.call("loadCompletion", callback)
        assert spy.get("loadCompletionReceivedCompletion") is callback


class TestThrowing:
    def test_error_preempts_closure(self):
        spy = _spy(func("load", param("id", INT), returns=STRING, is_throwing=True))
        invoked = []
        spy.set("loadIdClosure", lambda id: invoked.append(id) or "value")
        spy.set("loadIdThrowableError", ValueError("boom"))

        with pytest.raises(ValueError, match="boom"):
            spy.call("loadId", 4)

        assert invoked == []
        assert spy.get("loadIdCallsCount") == 1
        assert spy.get("loadIdReceivedInvocations") == [4]

    def test_clearing_error_restores_normal_path(self):
        spy = _spy(func("load", param("id", INT), returns=STRING, is_throwing=True))
        spy.set("loadIdReturnValue", "value")
        spy.set("loadIdThrowableError", ValueError("boom"))
        spy.set("loadIdThrowableError", None)
        assert spy.call("loadId", 1) == "value"

    def test_error_field_rejects_non_errors(self):
        spy = _spy(func("load", is_throwing=True))
        with pytest.raises(TypeMismatchFault):
            spy.set("loadThrowableError", "boom")


class TestAsync:
    def test_save_scenario(self):
        spy = _spy(func("save", is_async=True, is_throwing=True))
        saved = []

        async def closure_():
            saved.append(True)

        spy.set("saveClosure", closure_)
        asyncio.run(spy.acall("save"))

        assert saved == [True]
        assert spy.get("saveCallsCount") == 1

    def test_async_error(self):
        spy = _spy(func("save", is_async=True, is_throwing=True))
        spy.set("saveThrowableError", RuntimeError("offline"))
        with pytest.raises(RuntimeError, match="offline"):
            asyncio.run(spy.acall("save"))
        assert spy.get("saveCallsCount") == 1

    def test_async_closure_error_propagates(self):
        spy = _spy(func("fetch", returns=INT, is_async=True, is_throwing=True))

        async def failing():
            raise KeyError("missing")

        spy.set("fetchClosure", failing)
        with pytest.raises(KeyError):
            asyncio.run(spy.acall("fetch"))

    def test_async_return_value(self):
        spy = _spy(func("count", returns=INT, is_async=True))
        spy.set("countReturnValue", 3)
        assert asyncio.run(spy.acall("count")) == 3

    def test_sync_call_of_async_function_faults(self):
        spy = _spy(func("save", is_async=True, is_throwing=True))
        with pytest.raises(SpyFault, match="acall"):
            spy.call("save")

    def test_unset_async_closure_is_skipped(self):
        spy = _spy(func("save", is_async=True, is_throwing=True))
        assert asyncio.run(spy.acall("save")) is None


class TestGenerics:
    def _wrap_spy(self):
        return _spy(
            func(
                "wrap",
                param("data", placeholder("T"), label="_"),
                returns=array(placeholder("T")),
                generics=("T",),
            )
        )

    def test_bound_return_value(self):
        spy = self._wrap_spy()
        spy.set("wrapReturnValue", [1, 2])
        assert spy.call("wrap", 1, bindings={"T": int}) == [1, 2]
        assert spy.get("wrapReceivedInvocations") == [1]

    def test_forced_cast_failure(self):
        spy = self._wrap_spy()
        # Erased storage accepts anything; the cast at delivery checks it
        spy.set("wrapReturnValue", ["a"])
        with pytest.raises(TypeMismatchFault, match=r"\[T\]"):
            spy.call("wrap", 1, bindings={"T": int})

    def test_closure_result_is_cast(self):
        spy = self._wrap_spy()
        spy.set("wrapClosure", lambda data: [data, data])
        assert spy.call("wrap", "x", bindings={"T": str}) == ["x", "x"]

    def test_unbound_placeholder_accepts_anything(self):
        spy = self._wrap_spy()
        spy.set("wrapReturnValue", ["anything", 1])
        assert spy.call("wrap", object()) == ["anything", 1]

    def test_argument_checked_against_binding(self):
        spy = self._wrap_spy()
        spy.set("wrapReturnValue", [])
        with pytest.raises(TypeMismatchFault):
            spy.call("wrap", "x", bindings={"T": int})


class TestProperties:
    def test_settable_property(self):
        spy = _spy(prop("name", STRING, settable=True))
        spy.set("name", "spy")
        assert spy.get("name") == "spy"
        assert spy.get("underlyingName") == "spy"

    def test_get_only_property(self):
        spy = _spy(prop("count", INT))
        spy.set("underlyingCount", 3)
        assert spy.get("count") == 3
        with pytest.raises(AttributeError, match="get-only"):
            spy.set("count", 4)

    def test_unconfigured_property_faults(self):
        spy = _spy(prop("count", INT))
        with pytest.raises(UnwrapFault):
            spy.get("count")

    def test_optional_property_defaults_to_nil(self):
        spy = _spy(prop("delegate", optional(named("Delegate"))))
        assert spy.get("delegate") is None

    def test_field_names(self):
        spy = _spy(prop("name", STRING))
        assert spy.field_names == ["underlyingName", "name"]


class TestSubscripts:
    def _spy(self):
        return _spy(subscript(param("index", INT, label=None), returns=STRING, settable=True))

    def test_get_and_set(self):
        spy = self._spy()
        spy.set("subscriptIndexIntGetReturnValue", "x")

        assert spy.subscript_get(1) == "x"
        spy.subscript_set(3, "y")

        assert spy.get("subscriptIndexIntGetReceivedInvocations") == [1]
        assert spy.get("subscriptIndexIntSetReceivedInvocations") == [(3, "y")]
        assert spy.get("subscriptIndexIntSetCallsCount") == 1

    def test_no_matching_subscript(self):
        with pytest.raises(TypeError):
            self._spy().subscript_get("one")

    def test_overloads_are_chosen_by_index_type(self):
        spy = _spy(
            subscript(param("index", INT, label=None), returns=STRING),
            subscript(param("key", STRING, label=None), returns=INT),
        )
        spy.set("subscriptIndexIntGetReturnValue", "by index")
        spy.set("subscriptKeyStringGetReturnValue", 42)
        assert spy.subscript_get(0) == "by index"
        assert spy.subscript_get("k") == 42

    def test_get_only_subscript_rejects_set(self):
        spy = _spy(subscript(param("index", INT, label=None), returns=STRING))
        with pytest.raises(AttributeError):
            spy.subscript_set(0, "x")


class TestConformance:
    @pytest.mark.parametrize(
        ("value", "type_", "expected"),
        [
            (1, INT, True),
            (True, INT, False),
            (True, named("Bool"), True),
            ("a", INT, False),
            (None, optional(INT), True),
            ([1, 2], array(INT), True),
            ([1, "2"], array(INT), False),
            ({"a": 1}, named("Dictionary", STRING, INT), True),
            (lambda: None, closure(), True),
            (object(), named("Delegate"), True),
            (None, named("Delegate"), False),
        ],
    )
    def test_conforms(self, value, type_, expected):
        assert conforms(value, type_) is expected

    def test_bound_placeholder(self):
        assert conforms(1, placeholder("T"), {"T": int})
        assert not conforms("1", placeholder("T"), {"T": int})
        assert conforms("1", placeholder("T"))
