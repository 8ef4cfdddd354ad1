"""Tests for tradebook.core.result — Ok/Err error values."""

from __future__ import annotations

import dataclasses

import pytest
from hypothesis import given
from hypothesis import strategies as st

from tradebook.core.result import Err, Ok, unwrap

# ---------------------------------------------------------------------------
# Core: Ok and Err hold values, are frozen, support pattern matching
# ---------------------------------------------------------------------------


class TestOkBasics:
    def test_ok_holds_value(self) -> None:
        assert Ok(42).value == 42

    def test_ok_is_frozen(self) -> None:
        ok = Ok(42)
        with pytest.raises(dataclasses.FrozenInstanceError):
            ok.value = 99  # type: ignore[misc]

    def test_ok_equality(self) -> None:
        assert Ok(42) == Ok(42)
        assert Ok(42) != Ok(99)

    def test_pattern_match_ok(self) -> None:
        match Ok(42):
            case Ok(v):
                assert v == 42
            case _:
                pytest.fail("Should match Ok")

    def test_is_ok(self) -> None:
        assert Ok(1).is_ok()


class TestErrBasics:
    def test_err_holds_error(self) -> None:
        assert Err("fail").error == "fail"

    def test_err_is_frozen(self) -> None:
        err = Err("fail")
        with pytest.raises(dataclasses.FrozenInstanceError):
            err.error = "other"  # type: ignore[misc]

    def test_pattern_match_err(self) -> None:
        match Err("fail"):
            case Err(e):
                assert e == "fail"
            case _:
                pytest.fail("Should match Err")

    def test_is_not_ok(self) -> None:
        assert not Err("fail").is_ok()


# ---------------------------------------------------------------------------
# .map() / .bind()
# ---------------------------------------------------------------------------


def _positive(x: int) -> Ok[int] | Err[str]:
    if x <= 0:
        return Err("not positive")
    return Ok(x)


class TestMapBind:
    def test_ok_map_applies_function(self) -> None:
        assert Ok(5).map(lambda x: x * 2) == Ok(10)

    def test_err_map_passthrough(self) -> None:
        assert Err("fail").map(lambda x: x * 2) == Err("fail")

    def test_ok_bind_returns_ok(self) -> None:
        assert Ok(5).bind(_positive) == Ok(5)

    def test_ok_bind_returns_err(self) -> None:
        assert Ok(0).bind(_positive) == Err("not positive")

    def test_err_bind_short_circuits(self) -> None:
        calls: list[int] = []

        def record(x: int) -> Ok[int]:
            calls.append(x)
            return Ok(x)

        assert Err("initial").bind(record) == Err("initial")
        assert calls == []


# ---------------------------------------------------------------------------
# unwrap
# ---------------------------------------------------------------------------


class TestUnwrap:
    def test_ok_unwrap(self) -> None:
        assert Ok(42).unwrap() == 42

    def test_err_unwrap_raises(self) -> None:
        with pytest.raises(RuntimeError, match="Called unwrap on Err"):
            Err("fail").unwrap()

    def test_unwrap_or(self) -> None:
        assert Ok(42).unwrap_or(0) == 42
        assert Err("fail").unwrap_or(0) == 0

    def test_free_unwrap(self) -> None:
        assert unwrap(Ok(42)) == 42
        with pytest.raises(RuntimeError, match="unwrap on Err"):
            unwrap(Err("fail"))

    def test_free_unwrap_rejects_non_result(self) -> None:
        with pytest.raises(TypeError):
            unwrap(42)  # type: ignore[arg-type]


class TestMonadLaws:
    @given(st.integers())
    def test_map_identity_law(self, x: int) -> None:
        assert Ok(x).map(lambda v: v) == Ok(x)

    @given(st.integers())
    def test_bind_left_identity(self, x: int) -> None:
        assert Ok(x).bind(_positive) == _positive(x)

    @given(st.text())
    def test_err_map_identity(self, e: str) -> None:
        assert Err(e).map(lambda v: v * 2) == Err(e)
