"""FuncBase value hierarchy - immutable scalar, vector and text values."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
import math
from typing import Any, Sequence, Tuple

from funcbase.funcbase_error import FuncBaseTypeConversionError


class FuncBaseValue(ABC):
    """
    Abstract base class for all FuncBase values.

    All FuncBase values are immutable.  Assigning to a variable replaces its value.
    """

    @abstractmethod
    def to_python(self) -> Any:
        """Convert to a Python value."""

    @abstractmethod
    def type_name(self) -> str:
        """Return the FuncBase type name for error messages."""

    @abstractmethod
    def describe(self) -> str:
        """Return the textual form used in listings and snapshots."""


@dataclass(frozen=True)
class FuncBaseScalar(FuncBaseValue):
    """Represents a real number."""
    value: float

    def to_python(self) -> float:
        return self.value

    def type_name(self) -> str:
        return "scalar"

    def describe(self) -> str:
        return repr(self.value)


@dataclass(frozen=True)
class FuncBaseVector(FuncBaseValue):
    """Represents a 3-vector of real numbers."""
    x: float
    y: float
    z: float

    def to_python(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def type_name(self) -> str:
        return "vector"

    def describe(self) -> str:
        return f"Vec3D({self.x!r}, {self.y!r}, {self.z!r})"

    def components(self) -> Tuple[float, float, float]:
        """Return the three components as a tuple."""
        return (self.x, self.y, self.z)

    def length(self) -> float:
        """Return the Euclidean length of the vector."""
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def dot(self, other: 'FuncBaseVector') -> float:
        """Return the dot product with another vector."""
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: 'FuncBaseVector') -> 'FuncBaseVector':
        """Return the cross product self x other."""
        return FuncBaseVector(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x
        )


@dataclass(frozen=True)
class FuncBaseText(FuncBaseValue):
    """Represents text, stored verbatim."""
    value: str

    def to_python(self) -> str:
        return self.value

    def type_name(self) -> str:
        return "text"

    def describe(self) -> str:
        return self.value


def make_value(obj: Any) -> FuncBaseValue:
    """
    Build a FuncBase value from a Python object.

    Args:
        obj: An existing FuncBaseValue, an int or float, a 3-element sequence of numbers, or a str

    Returns:
        The corresponding FuncBase value

    Raises:
        FuncBaseTypeConversionError: If the object has no FuncBase representation
    """
    if isinstance(obj, FuncBaseValue):
        return obj

    # Bools are ints in Python, but they are not quantities
    if isinstance(obj, bool):
        raise FuncBaseTypeConversionError(
            f"Cannot store a boolean as a FuncBase value: {obj!r}",
            suggestion="Use 1 or 0 instead"
        )

    if isinstance(obj, (int, float)):
        return FuncBaseScalar(float(obj))

    if isinstance(obj, str):
        return FuncBaseText(obj)

    if isinstance(obj, Sequence) and len(obj) == 3:
        if all(isinstance(c, (int, float)) and not isinstance(c, bool) for c in obj):
            return FuncBaseVector(float(obj[0]), float(obj[1]), float(obj[2]))

    raise FuncBaseTypeConversionError(
        f"Cannot convert {type(obj).__name__} to a FuncBase value: {obj!r}",
        suggestion="Use a number, a string, or a sequence of three numbers"
    )


def coerce_value(value: FuncBaseValue, kind: Any = None) -> Any:
    """
    Convert a value to the kind requested by a caller.

    Args:
        value: Value to convert
        kind: One of None, float, int, str, tuple, FuncBaseScalar, FuncBaseVector, FuncBaseText,
            or FuncBaseValue

    Returns:
        The converted value.  None and FuncBaseValue return the value unchanged.

    Raises:
        FuncBaseTypeConversionError: If the value is not of a compatible kind
    """
    if kind is None or kind is FuncBaseValue:
        return value

    if kind in (float, int, FuncBaseScalar):
        if not isinstance(value, FuncBaseScalar):
            raise FuncBaseTypeConversionError(
                f"Cannot convert {value.type_name()} to {kind.__name__}",
                context=f"Value: {value.describe()}"
            )

        if kind is FuncBaseScalar:
            return value

        if kind is int:
            if not math.isfinite(value.value):
                raise FuncBaseTypeConversionError(f"Cannot convert non-finite scalar {value.value!r} to int")

            return int(value.value)

        return value.value

    if kind in (tuple, FuncBaseVector):
        if not isinstance(value, FuncBaseVector):
            raise FuncBaseTypeConversionError(
                f"Cannot convert {value.type_name()} to {kind.__name__}",
                context=f"Value: {value.describe()}"
            )

        return value if kind is FuncBaseVector else value.components()

    if kind in (str, FuncBaseText):
        if not isinstance(value, FuncBaseText):
            raise FuncBaseTypeConversionError(
                f"Cannot convert {value.type_name()} to {kind.__name__}",
                context=f"Value: {value.describe()}"
            )

        return value if kind is FuncBaseText else value.value

    raise FuncBaseTypeConversionError(f"Unsupported result kind: {kind!r}")
