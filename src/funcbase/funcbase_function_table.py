"""
Builtin function table for FuncBase.

The table maps each builtin function name to a numeric function code (used by the
CALL_FUNCTION instruction) and a fixed arity.  It is built once and never modified;
the syntax checker, compiler and VM are each handed the same table.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Tuple


@dataclass(frozen=True)
class FuncBaseFunctionDef:
    """A builtin function: its name, CALL_FUNCTION code and argument count."""
    name: str
    code: int
    arity: int


class FuncBaseFunctionTable:
    """Immutable registry of builtin functions."""

    # Authoritative list of builtin names and arities.  Function codes follow this order.
    STANDARD_FUNCTIONS: Tuple[Tuple[str, int], ...] = (
        ('abs', 1),
        ('acos', 1), ('acosh', 1),
        ('asin', 1), ('asinh', 1),
        ('atan', 1), ('atan2', 2), ('atanh', 1),
        ('ceil', 1),
        ('cos', 1), ('cosd', 1), ('cosh', 1),
        ('cot', 1), ('cotd', 1),
        ('cross', 2),
        ('csc', 1), ('cscd', 1),
        ('deg', 1),
        ('dot', 2),
        ('exp', 1),
        ('floor', 1),
        ('int', 1),
        ('inv', 1),
        ('log', 1), ('log10', 1),
        ('max', 2), ('min', 2),
        ('rad', 1),
        ('sec', 1), ('secd', 1),
        ('sin', 1), ('sind', 1), ('sinh', 1),
        ('sqrt', 1),
        ('tan', 1), ('tand', 1), ('tanh', 1),
        ('vec3d', 3),
    )

    def __init__(self, functions: List[Tuple[str, int]] | Tuple[Tuple[str, int], ...]) -> None:
        """
        Build a function table.

        Args:
            functions: (name, arity) pairs.  Function codes are assigned in order, starting at 0.

        Raises:
            ValueError: If a name is repeated, is not an identifier, or has a negative arity
        """
        by_name: Dict[str, FuncBaseFunctionDef] = {}
        by_code: List[FuncBaseFunctionDef] = []
        for code, (name, arity) in enumerate(functions):
            if name in by_name:
                raise ValueError(f"Function '{name}' registered twice")

            if not name.isidentifier():
                raise ValueError(f"Function name '{name}' is not an identifier")

            if arity < 0:
                raise ValueError(f"Function '{name}' has negative arity {arity}")

            definition = FuncBaseFunctionDef(name, code, arity)
            by_name[name] = definition
            by_code.append(definition)

        self._by_name: Mapping[str, FuncBaseFunctionDef] = MappingProxyType(by_name)
        self._by_code: Tuple[FuncBaseFunctionDef, ...] = tuple(by_code)

    @classmethod
    def create_default(cls) -> 'FuncBaseFunctionTable':
        """Create the standard builtin function table."""
        return cls(cls.STANDARD_FUNCTIONS)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[FuncBaseFunctionDef]:
        return iter(self._by_code)

    def __len__(self) -> int:
        return len(self._by_code)

    def find(self, name: str) -> FuncBaseFunctionDef | None:
        """Return the definition for a function name, or None."""
        return self._by_name.get(name)

    def find_code(self, code: int) -> FuncBaseFunctionDef | None:
        """Return the definition for a function code, or None."""
        if 0 <= code < len(self._by_code):
            return self._by_code[code]

        return None

    def names(self) -> List[str]:
        """Return all function names, in code order."""
        return [definition.name for definition in self._by_code]
