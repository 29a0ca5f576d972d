"""Tests for dataknobs_validation.validation module."""

from enum import Enum
from unittest.mock import Mock

import pytest

from dataknobs_validation.exceptions import (
    EmptyValidationError,
    InvalidArgumentError,
    SerializationError,
    ValidationFailedError,
)
from dataknobs_validation.validation import (
    Failure,
    Success,
    Validation,
    chain,
    chain_all,
    failure,
    failure_all,
    of,
    of_all,
    sequence,
    sequence_all,
    success,
)


class Error(Enum):
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    FATAL_ERROR = "fatal_error"


CLIENT_ERROR = Error.CLIENT_ERROR
SERVER_ERROR = Error.SERVER_ERROR
FATAL_ERROR = Error.FATAL_ERROR


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:

    def test_success_has_no_errors(self):
        result = success()
        assert isinstance(result, Success)
        assert result.is_empty()
        assert not result.non_empty()
        assert result.errors == ()

    def test_success_is_shared(self):
        assert success() is success()

    def test_of_keeps_argument_order(self):
        result = of(CLIENT_ERROR, SERVER_ERROR, CLIENT_ERROR)
        assert isinstance(result, Failure)
        assert result.errors == (CLIENT_ERROR, SERVER_ERROR, CLIENT_ERROR)

    def test_of_and_of_all_agree(self):
        assert of(CLIENT_ERROR, SERVER_ERROR) == of_all([CLIENT_ERROR, SERVER_ERROR])

    def test_of_all_empty_is_success(self):
        assert of_all([]) == success()
        assert of_all(iter(())) == success()

    def test_of_all_accepts_generator(self):
        result = of_all(e for e in [CLIENT_ERROR, FATAL_ERROR])
        assert result.errors == (CLIENT_ERROR, FATAL_ERROR)

    def test_of_all_none_rejected(self):
        with pytest.raises(InvalidArgumentError):
            of_all(None)

    def test_failure_varargs(self):
        assert failure(SERVER_ERROR).errors == (SERVER_ERROR,)
        assert failure(SERVER_ERROR, CLIENT_ERROR).errors == (SERVER_ERROR, CLIENT_ERROR)

    def test_failure_all_preserves_order(self):
        assert failure_all([FATAL_ERROR, CLIENT_ERROR]).errors == (FATAL_ERROR, CLIENT_ERROR)

    def test_failure_all_empty_rejected(self):
        with pytest.raises(InvalidArgumentError):
            failure_all([])

    def test_failure_requires_errors(self):
        with pytest.raises(InvalidArgumentError):
            Failure(())

    def test_failure_copies_input(self):
        errors = [CLIENT_ERROR]
        result = failure_all(errors)
        errors.append(SERVER_ERROR)
        assert result.errors == (CLIENT_ERROR,)

    def test_string_errors_are_not_split(self):
        assert of("bad email").errors == ("bad email",)

    @pytest.mark.parametrize("errors", ["abc", b"abc", 42])
    def test_failure_rejects_string_or_scalar(self, errors):
        with pytest.raises(InvalidArgumentError, match="failure"):
            Failure(errors)

    @pytest.mark.parametrize("factory", [failure_all, of_all])
    def test_iterable_factories_reject_string(self, factory):
        with pytest.raises(InvalidArgumentError):
            factory("abc")

    def test_failure_accepts_list(self):
        assert Failure(["abc"]).errors == ("abc",)


# ---------------------------------------------------------------------------
# Equality, iteration and inspection
# ---------------------------------------------------------------------------


class TestEqualityAndInspection:

    def test_successes_are_equal(self):
        assert Success() == success()

    def test_failures_equal_elementwise(self):
        assert of("a", "b") == failure("a", "b")
        assert failure("a", "b") == of("a", "b")

    def test_order_matters(self):
        assert of("a", "b") != of("b", "a")

    def test_success_never_equals_failure(self):
        assert success() != of("a")
        assert of("a") != success()

    def test_hashable(self):
        assert len({of("a"), of("a"), success(), success()}) == 2

    def test_iteration_yields_every_error(self):
        assert list(of("a", "b", "c")) == ["a", "b", "c"]

    def test_iteration_is_restartable(self):
        result = of("a", "b")
        assert list(result) == list(result)

    def test_success_iterates_empty(self):
        assert list(success()) == []

    def test_get_returns_first_error(self):
        assert of("a", "b").get() == "a"

    def test_get_on_success_raises(self):
        with pytest.raises(EmptyValidationError):
            success().get()

    def test_get_on_success_is_lookup_error(self):
        with pytest.raises(LookupError):
            success().get()

    def test_get_or_else(self):
        assert success().get_or_else("none") == "none"
        assert of("a").get_or_else("none") == "a"

    def test_contains_exists_for_all(self):
        result = of(1, 2, 3)
        assert result.contains(2)
        assert not result.contains(4)
        assert result.exists(lambda e: e > 2)
        assert not result.for_all(lambda e: e > 2)
        assert success().for_all(lambda e: False)
        assert not success().exists(lambda e: True)

    def test_to_list_is_a_copy(self):
        result = of("a")
        errors = result.to_list()
        errors.append("b")
        assert result.errors == ("a",)

    def test_string_forms(self):
        assert str(success()) == "Success!"
        assert str(of("a", "b")) == "List of 2 errors: a, b"
        assert of("a").string_prefix == "List of 1 errors"
        assert repr(of("a")) == "Failure(errors=('a',))"


# ---------------------------------------------------------------------------
# Transformation
# ---------------------------------------------------------------------------


class TestTransformation:

    def test_map_on_success_skips_mapper(self):
        mapper = Mock()
        assert success().map(mapper) == success()
        mapper.assert_not_called()

    def test_map_applies_in_order(self):
        assert of(CLIENT_ERROR, SERVER_ERROR).map(lambda e: e.name) == of(
            "CLIENT_ERROR", "SERVER_ERROR"
        )

    def test_map_get(self):
        assert failure(CLIENT_ERROR).map(lambda e: e.name).get() == "CLIENT_ERROR"

    def test_flat_map_replaces_errors(self):
        assert failure(SERVER_ERROR).flat_map(lambda _: failure(CLIENT_ERROR)) == failure(
            CLIENT_ERROR
        )

    def test_flat_map_concatenates(self):
        result = of("a", "b").flat_map(lambda e: of(e, e.upper()))
        assert result.errors == ("a", "A", "b", "B")

    def test_flat_map_to_success_normalizes(self):
        assert failure("a").flat_map(lambda _: success()) == success()

    def test_flat_map_partial_success(self):
        result = of(1, 2, 3).flat_map(lambda e: of(e) if e % 2 else success())
        assert result.errors == (1, 3)

    def test_flat_map_requires_validation_result(self):
        with pytest.raises(InvalidArgumentError):
            of("a").flat_map(lambda e: e)

    def test_filter_keeps_matching(self):
        assert of(1, 2, 3, 4).filter(lambda e: e % 2 == 0) == of(2, 4)

    def test_filter_removing_all_is_success(self):
        assert of(1, 3).filter(lambda e: e % 2 == 0) == success()

    @pytest.mark.parametrize("operation", ["map", "flat_map", "filter"])
    def test_none_function_rejected(self, operation):
        with pytest.raises(InvalidArgumentError):
            getattr(success(), operation)(None)


# ---------------------------------------------------------------------------
# Side effects
# ---------------------------------------------------------------------------


class TestSideEffects:

    def test_peek_passes_representative_error_once(self, remote_server):
        result = of(CLIENT_ERROR, SERVER_ERROR)
        returned = result.peek(lambda e: remote_server.send_errors(e))
        assert returned is result
        remote_server.send_errors.assert_called_once_with(CLIENT_ERROR)

    def test_peek_on_success_does_nothing(self, remote_server):
        success().peek(lambda e: remote_server.send_errors(e))
        remote_server.send_errors.assert_not_called()

    def test_for_each_calls_per_error(self, remote_server):
        of(CLIENT_ERROR, SERVER_ERROR).for_each(lambda _: remote_server.send_errors())
        assert remote_server.send_errors.call_count == 2

    def test_if_present_receives_all_errors_once(self, remote_server):
        of(CLIENT_ERROR, SERVER_ERROR).if_present(lambda errs: remote_server.send_errors(errs))
        remote_server.send_errors.assert_called_once_with((CLIENT_ERROR, SERVER_ERROR))

    def test_if_present_on_success_does_nothing(self, remote_server):
        success().if_present(lambda errs: remote_server.send_errors(errs))
        remote_server.send_errors.assert_not_called()

    def test_if_present_throw_on_failure(self):
        with pytest.raises(RuntimeError, match="SERVER_ERROR"):
            success().combine(failure(SERVER_ERROR)).if_present_throw(
                lambda errs: RuntimeError(",".join(e.name for e in errs))
            )

    def test_if_present_throw_gets_full_list(self):
        captured = []

        def factory(errors):
            captured.append(errors)
            return ValueError("failed")

        with pytest.raises(ValueError):
            of("a", "b").if_present_throw(factory)
        assert captured == [("a", "b")]

    def test_if_present_throw_on_success_returns(self):
        factory = Mock()
        assert success().if_present_throw(factory) is None
        factory.assert_not_called()

    def test_if_present_throw_default_factory(self):
        with pytest.raises(ValidationFailedError) as exc_info:
            of("a", "b").if_present_throw()
        assert exc_info.value.errors == ("a", "b")

    def test_if_present_throw_factory_must_return_exception(self):
        with pytest.raises(InvalidArgumentError):
            of("a").if_present_throw(lambda errs: "not an exception")

    def test_raise_for_errors(self):
        success().raise_for_errors()
        with pytest.raises(ValidationFailedError, match="2 error"):
            of("a", "b").raise_for_errors()

    @pytest.mark.parametrize("operation", ["peek", "for_each", "if_present"])
    def test_none_action_rejected_even_on_success(self, operation):
        with pytest.raises(InvalidArgumentError):
            getattr(success(), operation)(None)


# ---------------------------------------------------------------------------
# Combination
# ---------------------------------------------------------------------------


class TestCombine:

    def test_success_with_success(self):
        assert success().combine(success()) == success()

    def test_success_is_identity_on_both_sides(self):
        assert success().combine(failure(FATAL_ERROR)) == failure(FATAL_ERROR)
        assert failure(FATAL_ERROR).combine(success()) == failure(FATAL_ERROR)
        assert success().combine(failure(FATAL_ERROR)) == failure(FATAL_ERROR).combine(
            success()
        )

    def test_failures_concatenate(self):
        assert failure("a").combine(failure("b")) == failure_all(["a", "b"])

    def test_multi_error_concatenation(self):
        assert of("a", "b").combine(of("c", "d")).errors == ("a", "b", "c", "d")

    def test_associative(self):
        a, b, c = of("a"), of("b", "b2"), of("c")
        assert a.combine(b).combine(c) == a.combine(b.combine(c))

    def test_receiver_unchanged(self):
        left = of("a")
        left.combine(of("b"))
        assert left.errors == ("a",)

    def test_none_other_rejected(self):
        with pytest.raises(InvalidArgumentError):
            success().combine(None)

    def test_or_else(self):
        assert success().or_else(lambda: of("b")) == of("b")
        supplier = Mock()
        assert of("a").or_else(supplier) == of("a")
        supplier.assert_not_called()

    def test_and_then_runs_next_on_success(self):
        assert success().and_then(lambda: of("b")) == of("b")

    def test_and_then_short_circuits_on_failure(self):
        next_validator = Mock(return_value=of("b"))
        result = of("a")
        assert result.and_then(next_validator) is result
        next_validator.assert_not_called()

    def test_and_then_rejects_non_validation_result(self):
        with pytest.raises(InvalidArgumentError):
            success().and_then(lambda: None)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


class TestSequence:

    def test_successes_skipped(self):
        assert sequence(failure("a"), success(), failure("b")) == failure("a", "b")

    def test_sequence_forwards_every_error(self, remote_server):
        sequence(of(CLIENT_ERROR), success(), of(SERVER_ERROR)).for_each(
            lambda _: remote_server.send_errors()
        )
        assert remote_server.send_errors.call_count == 2

    def test_empty_sequence_is_success(self):
        assert sequence() == success()
        assert sequence_all([]) == success()

    def test_all_successes(self):
        assert sequence(success(), success()) == success()

    def test_sequence_all_accepts_generator(self):
        result = sequence_all(of(i) for i in range(3))
        assert result.errors == (0, 1, 2)

    def test_sequence_rejects_non_validation(self):
        with pytest.raises(InvalidArgumentError):
            sequence(of("a"), None)

    def test_sequence_all_none_rejected(self):
        with pytest.raises(InvalidArgumentError):
            sequence_all(None)


class TestChain:

    def test_stops_at_first_failure(self, remote_server):
        remote_server.extremely_expensive_validation.return_value = of(SERVER_ERROR)
        result = chain(lambda: of(CLIENT_ERROR), remote_server.extremely_expensive_validation)
        assert result == of(CLIENT_ERROR)
        remote_server.extremely_expensive_validation.assert_not_called()

    def test_runs_all_while_successful(self):
        calls = []

        def step(name, outcome):
            def run():
                calls.append(name)
                return outcome
            return run

        result = chain(step("a", success()), step("b", success()), step("c", of("c")))
        assert calls == ["a", "b", "c"]
        assert result == of("c")

    def test_all_successful_is_success(self):
        assert chain(success, success) == success()

    def test_empty_chain_is_success(self):
        assert chain() == success()

    def test_chain_all_accepts_iterable(self):
        later = Mock(return_value=success())
        result = chain_all(iter([lambda: of("a"), later]))
        assert result == of("a")
        later.assert_not_called()

    def test_non_callable_rejected_before_any_call(self):
        first = Mock(return_value=success())
        with pytest.raises(InvalidArgumentError):
            chain(first, None)
        first.assert_not_called()

    def test_non_validation_result_rejected(self):
        with pytest.raises(InvalidArgumentError):
            chain(lambda: "oops")


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


class TestSerialization:

    def test_success_to_dict(self):
        assert success().to_dict() == {"status": "success"}

    def test_failure_to_dict(self):
        assert of("a", "b").to_dict() == {"status": "failure", "errors": ["a", "b"]}

    def test_serializer_applied(self):
        data = of(CLIENT_ERROR).to_dict(serializer=lambda e: e.name)
        assert data == {"status": "failure", "errors": ["CLIENT_ERROR"]}

    def test_from_dict_restores(self):
        data = {"status": "failure", "errors": ["CLIENT_ERROR", "FATAL_ERROR"]}
        restored = Validation.from_dict(data, deserializer=lambda name: Error[name])
        assert restored == of(CLIENT_ERROR, FATAL_ERROR)
        assert Validation.from_dict({"status": "success"}) == success()

    def test_serializer_failure_wrapped(self):
        with pytest.raises(SerializationError):
            of("a").to_dict(serializer=lambda e: e.missing)

    @pytest.mark.parametrize(
        "data",
        [
            None,
            {},
            {"status": "unknown"},
            {"status": "failure"},
            {"status": "failure", "errors": []},
        ],
    )
    def test_from_dict_rejects_malformed(self, data):
        with pytest.raises(SerializationError):
            Validation.from_dict(data)
