import pytest

from favicon_api.errors import FetchFailed, ValidationFailed
from favicon_api.services.attempts import Attempt, first_success


def test_first_non_none_result_wins():
    calls = []

    def attempt(name, result):
        def run():
            calls.append(name)
            return result
        return Attempt(name, run)

    result = first_success(
        [attempt("a", None), attempt("b", "found"), attempt("c", "unused")], label="test"
    )
    assert result == "found"
    assert calls == ["a", "b"]


def test_recoverable_errors_move_on():
    def broken():
        raise FetchFailed("https://example.com", "timeout")

    assert first_success([Attempt("broken", broken), Attempt("ok", lambda: 1)], label="test") == 1


def test_fatal_errors_stop_the_sequence():
    def broken():
        raise ValidationFailed("bad bytes")

    later = []
    with pytest.raises(ValidationFailed):
        first_success(
            [Attempt("broken", broken, fatal=True), Attempt("later", lambda: later.append(1))],
            label="test",
        )
    assert later == []


def test_unexpected_errors_propagate():
    def broken():
        raise KeyError("bug")

    with pytest.raises(KeyError):
        first_success([Attempt("broken", broken), Attempt("ok", lambda: 1)], label="test")


def test_exhausted_returns_none():
    assert first_success([], label="test") is None
    assert first_success([Attempt("empty", lambda: None)], label="test") is None
