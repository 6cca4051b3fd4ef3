"""Tests for vector values in expressions."""

import pytest

from funcbase import FuncBaseDivideByZeroError, FuncBaseTypeMismatchError, FuncBaseVector


class TestVectors:
    """Test vector arithmetic."""

    @pytest.fixture(autouse=True)
    def vectors(self, funcbase):
        """Define a pair of vectors and a scalar."""
        funcbase.define_variable("a", (1.0, 2.0, 3.0))
        funcbase.define_variable("b", (4.0, 5.0, 6.0))
        funcbase.define_variable("s", 2.0)

    @pytest.mark.parametrize("expression,expected", [
        ("a+b", (5.0, 7.0, 9.0)),
        ("b-a", (3.0, 3.0, 3.0)),
        ("a*s", (2.0, 4.0, 6.0)),
        ("s*a", (2.0, 4.0, 6.0)),
        ("a*b", (-3.0, 6.0, -3.0)),
        ("b/s", (2.0, 2.5, 3.0)),
        ("s/a", (2.0, 1.0, 2.0 / 3.0)),
        ("b/a", (4.0, 2.5, 2.0)),
        ("-a", (-1.0, -2.0, -3.0)),
        ("-(-a)", (1.0, 2.0, 3.0)),
        ("vec3d(1,0,0)*vec3d(0,1,0)", (0.0, 0.0, 1.0)),
        ("vec3d(s,s*2,-s)", (2.0, 4.0, -2.0)),
        ("cross(a,b)", (-3.0, 6.0, -3.0)),
    ])
    def test_vector_operations(self, funcbase, helpers, expression, expected):
        """Test operators that produce vectors."""
        helpers.assert_vector(funcbase, expression, expected)

    @pytest.mark.parametrize("expression,expected", [
        ("dot(a,b)", 32.0),
        ("abs(vec3d(3,4,0))", 5.0),
        ("abs(a-a)", 0.0),
    ])
    def test_vector_to_scalar(self, funcbase, helpers, expression, expected):
        """Test functions that reduce vectors to scalars."""
        helpers.assert_close_to(funcbase, expression, expected)

    @pytest.mark.parametrize("expression,message", [
        ("a+s", "Cannot apply '\\+' to vector and scalar"),
        ("s-a", "Cannot apply '-' to scalar and vector"),
        ("a^s", "Cannot apply '\\^' to vector and scalar"),
        ("a%s", "Cannot apply '%' to vector and scalar"),
        ("sin(a)", "Function 'sin' requires a scalar, got vector"),
        ("dot(a,s)", "Function 'dot' requires a vector, got scalar"),
    ])
    def test_vector_type_errors(self, funcbase, expression, message):
        """Test operations that do not accept vectors."""
        with pytest.raises(FuncBaseTypeMismatchError, match=message):
            funcbase.evaluate_expression(expression)

    def test_divide_by_zero_component(self, funcbase):
        """Test division by a vector with a zero component."""
        with pytest.raises(FuncBaseDivideByZeroError, match="zero component"):
            funcbase.evaluate_expression("a/vec3d(1,0,1)")

    def test_divide_vector_by_zero(self, funcbase):
        """Test division of a vector by a zero scalar."""
        with pytest.raises(FuncBaseDivideByZeroError):
            funcbase.evaluate_expression("a/(s-2)")

    def test_vector_result_kinds(self, funcbase):
        """Test conversion of vector results."""
        assert funcbase.evaluate_expression("a+b", tuple) == (5.0, 7.0, 9.0)
        assert funcbase.evaluate_expression("a+b", FuncBaseVector) == FuncBaseVector(5.0, 7.0, 9.0)

    def test_vector_describe(self, funcbase):
        """Test the textual form of a vector."""
        assert funcbase.evaluate_expression("a").describe() == "Vec3D(1.0, 2.0, 3.0)"
