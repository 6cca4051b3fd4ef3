"""Native implementations of the FuncBase builtin functions."""

import math
from typing import Callable, Dict, List

from funcbase.funcbase_error import (
    FuncBaseDivideByZeroError, FuncBaseNumericDomainError, FuncBaseTypeMismatchError
)
from funcbase.funcbase_value import FuncBaseValue, FuncBaseScalar, FuncBaseVector


class FuncBaseMathFunctions:
    """Mathematical builtin functions for FuncBase."""

    def _scalar(self, value: FuncBaseValue, function_name: str) -> float:
        """Extract a float from a scalar argument."""
        if isinstance(value, FuncBaseScalar):
            return value.value

        raise FuncBaseTypeMismatchError(f"Function '{function_name}' requires a scalar, got {value.type_name()}")

    def _vector(self, value: FuncBaseValue, function_name: str) -> FuncBaseVector:
        """Check a vector argument."""
        if isinstance(value, FuncBaseVector):
            return value

        raise FuncBaseTypeMismatchError(f"Function '{function_name}' requires a vector, got {value.type_name()}")

    def _unary(self, function_name: str, impl: Callable[[float], float]) -> Callable[[List[FuncBaseValue]], FuncBaseValue]:
        """Wrap a float -> float function, mapping Python math errors to FuncBase errors."""
        def call(args: List[FuncBaseValue]) -> FuncBaseValue:
            x = self._scalar(args[0], function_name)
            try:
                return FuncBaseScalar(impl(x))

            except ValueError as e:
                raise FuncBaseNumericDomainError(
                    f"Argument outside the domain of '{function_name}': {x!r}"
                ) from e

            except OverflowError as e:
                raise FuncBaseNumericDomainError(f"Result of '{function_name}({x!r})' is out of range") from e

        return call

    def _reciprocal(self, function_name: str, impl: Callable[[float], float]) -> Callable[[float], float]:
        """Build 1/impl(x), rejecting the poles of the reciprocal."""
        def call(x: float) -> float:
            t = impl(x)
            if t == 0.0:
                raise ValueError(f"{function_name} has a pole at {x!r}")

            return 1.0 / t

        return call

    def get_functions(self) -> Dict[str, Callable[[List[FuncBaseValue]], FuncBaseValue]]:
        """Return dictionary of builtin function implementations."""
        rad = math.radians
        return {
            'abs': self._builtin_abs,
            'acos': self._unary('acos', math.acos),
            'acosh': self._unary('acosh', math.acosh),
            'asin': self._unary('asin', math.asin),
            'asinh': self._unary('asinh', math.asinh),
            'atan': self._unary('atan', math.atan),
            'atan2': self._builtin_atan2,
            'atanh': self._unary('atanh', math.atanh),
            'ceil': self._unary('ceil', lambda x: float(math.ceil(x))),
            'cos': self._unary('cos', math.cos),
            'cosd': self._unary('cosd', lambda x: math.cos(rad(x))),
            'cosh': self._unary('cosh', math.cosh),
            'cot': self._unary('cot', self._reciprocal('cot', math.tan)),
            'cotd': self._unary('cotd', self._reciprocal('cotd', lambda x: math.tan(rad(x)))),
            'cross': self._builtin_cross,
            'csc': self._unary('csc', self._reciprocal('csc', math.sin)),
            'cscd': self._unary('cscd', self._reciprocal('cscd', lambda x: math.sin(rad(x)))),
            'deg': self._unary('deg', math.degrees),
            'dot': self._builtin_dot,
            'exp': self._unary('exp', math.exp),
            'floor': self._unary('floor', lambda x: float(math.floor(x))),
            'int': self._unary('int', lambda x: float(math.trunc(x + 0.5))),
            'inv': self._builtin_inv,
            'log': self._unary('log', math.log),
            'log10': self._unary('log10', math.log10),
            'max': self._builtin_max,
            'min': self._builtin_min,
            'rad': self._unary('rad', math.radians),
            'sec': self._unary('sec', self._reciprocal('sec', math.cos)),
            'secd': self._unary('secd', self._reciprocal('secd', lambda x: math.cos(rad(x)))),
            'sin': self._unary('sin', math.sin),
            'sind': self._unary('sind', lambda x: math.sin(rad(x))),
            'sinh': self._unary('sinh', math.sinh),
            'sqrt': self._unary('sqrt', math.sqrt),
            'tan': self._unary('tan', math.tan),
            'tand': self._unary('tand', lambda x: math.tan(rad(x))),
            'tanh': self._unary('tanh', math.tanh),
            'vec3d': self._builtin_vec3d,
        }

    def _builtin_abs(self, args: List[FuncBaseValue]) -> FuncBaseValue:
        """Absolute value of a scalar, or the length of a vector."""
        value = args[0]
        if isinstance(value, FuncBaseVector):
            return FuncBaseScalar(value.length())

        return FuncBaseScalar(abs(self._scalar(value, 'abs')))

    def _builtin_atan2(self, args: List[FuncBaseValue]) -> FuncBaseValue:
        y = self._scalar(args[0], 'atan2')
        x = self._scalar(args[1], 'atan2')
        return FuncBaseScalar(math.atan2(y, x))

    def _builtin_inv(self, args: List[FuncBaseValue]) -> FuncBaseValue:
        x = self._scalar(args[0], 'inv')
        if x == 0.0:
            raise FuncBaseDivideByZeroError("Function 'inv' called with zero")

        return FuncBaseScalar(1.0 / x)

    def _builtin_max(self, args: List[FuncBaseValue]) -> FuncBaseValue:
        a = self._scalar(args[0], 'max')
        b = self._scalar(args[1], 'max')
        return FuncBaseScalar(a if a > b else b)

    def _builtin_min(self, args: List[FuncBaseValue]) -> FuncBaseValue:
        a = self._scalar(args[0], 'min')
        b = self._scalar(args[1], 'min')
        return FuncBaseScalar(a if a < b else b)

    def _builtin_dot(self, args: List[FuncBaseValue]) -> FuncBaseValue:
        a = self._vector(args[0], 'dot')
        b = self._vector(args[1], 'dot')
        return FuncBaseScalar(a.dot(b))

    def _builtin_cross(self, args: List[FuncBaseValue]) -> FuncBaseValue:
        a = self._vector(args[0], 'cross')
        b = self._vector(args[1], 'cross')
        return a.cross(b)

    def _builtin_vec3d(self, args: List[FuncBaseValue]) -> FuncBaseValue:
        """Build a vector from three scalars."""
        x = self._scalar(args[0], 'vec3d')
        y = self._scalar(args[1], 'vec3d')
        z = self._scalar(args[2], 'vec3d')
        return FuncBaseVector(x, y, z)
