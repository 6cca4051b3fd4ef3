"""Shared fixtures and utilities for FuncBase tests."""

import math
from typing import Any

import pytest

from funcbase import FuncBase, FuncBaseScalar, FuncBaseVector


@pytest.fixture
def funcbase():
    """Create a fresh FuncBase instance for each test."""
    return FuncBase()


@pytest.fixture
def funcbase_custom():
    """Factory for FuncBase instances with custom configuration."""
    def _create_funcbase(max_depth: int = 100) -> FuncBase:
        return FuncBase(max_depth=max_depth)
    return _create_funcbase


class FuncBaseTestHelpers:
    """Helper utilities for FuncBase testing."""

    @staticmethod
    def assert_evaluates_to(funcbase: FuncBase, expression: str, expected: Any) -> None:
        """Assert that expression evaluates to expected Python value."""
        result = funcbase.evaluate_expression(expression)
        assert result.to_python() == expected, f"Expected {expected!r}, got {result.describe()}"

    @staticmethod
    def assert_close_to(funcbase: FuncBase, expression: str, expected: float, rel_tol: float = 1e-12) -> None:
        """Assert that expression evaluates to a scalar close to expected."""
        result = funcbase.evaluate_expression(expression)
        assert isinstance(result, FuncBaseScalar), f"Expected a scalar, got {result.describe()}"
        assert math.isclose(result.value, expected, rel_tol=rel_tol, abs_tol=1e-12), \
            f"Expected {expected!r}, got {result.value!r}"

    @staticmethod
    def assert_vector(funcbase: FuncBase, expression: str, expected: tuple) -> None:
        """Assert that expression evaluates to the expected vector."""
        result = funcbase.evaluate_expression(expression)
        assert isinstance(result, FuncBaseVector), f"Expected a vector, got {result.describe()}"
        assert result.components() == pytest.approx(expected)


@pytest.fixture
def helpers():
    """Provide test helper utilities."""
    return FuncBaseTestHelpers
