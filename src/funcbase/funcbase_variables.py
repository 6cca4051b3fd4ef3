"""Variable environment for FuncBase: named values with stable slot indices."""

from dataclasses import dataclass
import difflib
import hashlib
import io
import json
import logging
from typing import Any, Dict, List, TextIO

from funcbase.funcbase_error import FuncBaseVariableError
from funcbase.funcbase_value import FuncBaseValue, FuncBaseScalar, FuncBaseVector, FuncBaseText, make_value


@dataclass
class FuncBaseVariable:
    """
    A named value held in the environment.

    The slot is allocated when the variable is created and stays with it until the variable
    is removed.  Compiled programs refer to variables by slot, not by name.
    """
    name: str
    value: FuncBaseValue
    slot: int
    active: bool = False


class FuncBaseVariables:
    """
    Mutable mapping from variable name to value.

    Every variable owns a slot index.  Overwriting a variable keeps its slot, so programs compiled
    against it see the new value.  Removing a variable retires its slot permanently: a later
    variable with the same name gets a fresh slot, and programs that referenced the old one fail
    when evaluated.
    """

    # Logger for the class
    _logger = logging.getLogger("FuncBaseVariables")

    def __init__(self) -> None:
        self._by_name: Dict[str, FuncBaseVariable] = {}
        self._by_slot: Dict[int, FuncBaseVariable] = {}
        self._next_slot = 0

    def __len__(self) -> int:
        return len(self._by_name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def _create(self, name: str, value: FuncBaseValue) -> FuncBaseVariable:
        variable = FuncBaseVariable(name, value, self._next_slot)
        self._next_slot += 1
        self._by_name[name] = variable
        self._by_slot[variable.slot] = variable
        return variable

    def define(self, name: str, value: Any) -> FuncBaseVariable:
        """
        Create a new variable.

        Args:
            name: Variable name
            value: FuncBaseValue or a Python value accepted by make_value

        Returns:
            The new variable

        Raises:
            FuncBaseVariableError: If the name is already defined
        """
        if name in self._by_name:
            raise FuncBaseVariableError(
                f"Variable already defined: '{name}'",
                suggestion="Use set() to overwrite an existing variable"
            )

        return self._create(name, make_value(value))

    def set(self, name: str, value: Any) -> FuncBaseVariable:
        """
        Overwrite a variable, creating it if it does not exist.

        An existing variable keeps its slot, even if the new value is of a different kind.

        Args:
            name: Variable name
            value: FuncBaseValue or a Python value accepted by make_value

        Returns:
            The updated or new variable
        """
        new_value = make_value(value)
        variable = self._by_name.get(name)
        if variable is None:
            return self._create(name, new_value)

        if type(variable.value) is not type(new_value):
            self._logger.debug(
                "variable '%s' changes kind from %s to %s", name, variable.value.type_name(), new_value.type_name()
            )

        variable.value = new_value
        return variable

    def remove(self, name: str) -> None:
        """
        Remove a variable and retire its slot.

        Args:
            name: Variable name

        Raises:
            FuncBaseVariableError: If the variable does not exist
        """
        variable = self._by_name.pop(name, None)
        if variable is None:
            raise self._missing(name)

        del self._by_slot[variable.slot]
        self._logger.debug("removed variable '%s' (slot %d)", name, variable.slot)

    def has(self, name: str) -> bool:
        """Check whether a variable is defined."""
        return name in self._by_name

    def find(self, name: str) -> FuncBaseVariable | None:
        """Return the variable with this name, or None."""
        return self._by_name.get(name)

    def get(self, name: str) -> FuncBaseValue:
        """
        Read a variable's value and mark it active.

        Args:
            name: Variable name

        Returns:
            The current value

        Raises:
            FuncBaseVariableError: If the variable does not exist
        """
        variable = self._by_name.get(name)
        if variable is None:
            raise self._missing(name)

        variable.active = True
        return variable.value

    def slot_of(self, name: str) -> int:
        """
        Return the slot index for a variable.

        Raises:
            FuncBaseVariableError: If the variable does not exist
        """
        variable = self._by_name.get(name)
        if variable is None:
            raise self._missing(name)

        return variable.slot

    def find_slot(self, slot: int) -> FuncBaseVariable | None:
        """Return the variable that owns a slot, or None if the slot has been retired."""
        return self._by_slot.get(slot)

    def store_slot(self, slot: int, value: FuncBaseValue) -> bool:
        """
        Write a value through a slot.

        Returns:
            False if the slot no longer resolves to a variable
        """
        variable = self._by_slot.get(slot)
        if variable is None:
            return False

        variable.value = value
        return True

    def copy(self, new_name: str, old_name: str) -> FuncBaseVariable:
        """
        Copy a variable's value to a new name with a new slot.

        An existing variable called new_name is removed first.

        Args:
            new_name: Name of the copy
            old_name: Name of the variable to copy

        Returns:
            The copy (or the original, if both names are the same)

        Raises:
            FuncBaseVariableError: If old_name does not exist
        """
        source = self._by_name.get(old_name)
        if source is None:
            raise self._missing(old_name)

        if new_name == old_name:
            return source

        if new_name in self._by_name:
            self.remove(new_name)

        return self._create(new_name, source.value)

    def copy_set(self, old_head: str, new_head: str) -> List[str]:
        """
        Copy every variable whose name starts with old_head, replacing that prefix with new_head.

        An empty old_head matches every variable, and new_head is prepended.

        Args:
            old_head: Prefix of the variables to copy
            new_head: Replacement prefix

        Returns:
            Sorted list of the new names

        Raises:
            FuncBaseVariableError: If no variable starts with old_head
        """
        if old_head == new_head:
            return []

        # Build the full replacement list first since copying mutates the map
        replacements = {
            name: new_head + name[len(old_head):]
            for name in sorted(self._by_name)
            if name.startswith(old_head)
        }

        if not replacements:
            raise FuncBaseVariableError(f"No variables start with '{old_head}'")

        for old_name, new_name in replacements.items():
            self.copy(new_name, old_name)

        return sorted(replacements.values())

    def names(self) -> List[str]:
        """Return all variable names, sorted."""
        return sorted(self._by_name)

    def reset_active(self) -> None:
        """Clear the active flag on every variable."""
        for variable in self._by_name.values():
            variable.active = False

    def active_names(self) -> List[str]:
        """Return the names of variables read since the last reset, sorted."""
        return sorted(name for name, variable in self._by_name.items() if variable.active)

    def write_all(self, stream: TextIO) -> None:
        """Write every variable as a 'name value' line, sorted by name."""
        for name in self.names():
            stream.write(f"{name} {self._by_name[name].value.describe()}\n")

    def write_active(self, stream: TextIO) -> None:
        """Write every active variable as a 'name value' line, sorted by name."""
        for name in self.active_names():
            stream.write(f"{name} {self._by_name[name].value.describe()}\n")

    def variable_hash(self) -> str:
        """Return the MD5 hex digest of the active variable listing."""
        buffer = io.StringIO()
        self.write_active(buffer)
        return hashlib.md5(buffer.getvalue().encode('utf-8')).hexdigest()

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Return a JSON-compatible snapshot of every variable's current value."""
        snapshot: Dict[str, Dict[str, Any]] = {}
        for name in self.names():
            value = self._by_name[name].value
            if isinstance(value, FuncBaseVector):
                snapshot[name] = {"type": "vector", "value": list(value.components())}

            else:
                snapshot[name] = {"type": value.type_name(), "value": value.to_python()}

        return snapshot

    def update_from_dict(self, data: Dict[str, Dict[str, Any]]) -> None:
        """
        Set variables from a snapshot produced by to_dict().

        Nothing is changed unless every entry is valid.

        Raises:
            FuncBaseVariableError: If the snapshot or any entry is malformed
        """
        if not isinstance(data, dict):
            raise FuncBaseVariableError(f"Variable snapshot must be a mapping, got {type(data).__name__}")

        values: Dict[str, FuncBaseValue] = {}
        for name, entry in data.items():
            if not isinstance(entry, dict):
                raise FuncBaseVariableError(
                    f"Invalid entry for variable '{name}': {entry!r}",
                    suggestion='Entries look like {"type": "scalar", "value": 1.0}'
                )

            type_name = entry.get("type", "scalar")
            raw = entry.get("value")
            value: FuncBaseValue
            try:
                if type_name == "scalar":
                    value = FuncBaseScalar(float(raw))

                elif type_name == "vector":
                    value = FuncBaseVector(float(raw[0]), float(raw[1]), float(raw[2]))

                elif type_name == "text":
                    value = FuncBaseText(str(raw))

                else:
                    raise FuncBaseVariableError(f"Unknown variable type '{type_name}' for '{name}'")

            except (TypeError, ValueError, IndexError, KeyError) as e:
                raise FuncBaseVariableError(f"Invalid value for variable '{name}': {raw!r}") from e

            values[name] = value

        for name, value in values.items():
            if name in self._by_name:
                self._logger.debug("snapshot overwrites variable '%s'", name)

            self.set(name, value)

    def save(self, path: str) -> None:
        """
        Save a snapshot of all variable values to a JSON file.

        Args:
            path: Path to the snapshot file
        """
        with open(path, 'w', encoding='utf-8') as f:
            json.dump({"variables": self.to_dict()}, f, indent=4)

    def load(self, path: str) -> None:
        """
        Load variable values from a JSON snapshot file, creating or overwriting variables.

        Args:
            path: Path to the snapshot file

        Raises:
            json.JSONDecodeError: If the file contains invalid JSON
            FuncBaseVariableError: If an entry is malformed
        """
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise FuncBaseVariableError(f"Snapshot file must hold a JSON object, got {type(data).__name__}")

        self.update_from_dict(data.get("variables", {}))

    def _missing(self, name: str) -> FuncBaseVariableError:
        similar = difflib.get_close_matches(name, list(self._by_name), n=3, cutoff=0.6)
        return FuncBaseVariableError(
            f"Undefined variable: '{name}'",
            suggestion=f"Did you mean: {', '.join(similar)}?" if similar else None
        )
