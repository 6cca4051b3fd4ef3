"""Tests for the FuncBase variable environment."""

import io
import json

import pytest

from funcbase import (
    FuncBaseScalar, FuncBaseText, FuncBaseTypeConversionError, FuncBaseVariableError, FuncBaseVariables,
    FuncBaseVector
)


@pytest.fixture
def variables():
    """Create an empty variable environment."""
    return FuncBaseVariables()


class TestVariables:
    """Test defining, reading and removing variables."""

    def test_define_and_get(self, variables):
        """Test that defined values convert to FuncBase values."""
        variables.define("r", 2)
        variables.define("v", [1, 2, 3])
        variables.define("mat", "Stainless304")

        assert variables.get("r") == FuncBaseScalar(2.0)
        assert variables.get("v") == FuncBaseVector(1.0, 2.0, 3.0)
        assert variables.get("mat") == FuncBaseText("Stainless304")
        assert len(variables) == 3
        assert "r" in variables

    def test_define_duplicate(self, variables):
        """Test that define() refuses an existing name."""
        variables.define("r", 1)
        with pytest.raises(FuncBaseVariableError, match="already defined"):
            variables.define("r", 2)

    def test_slots_are_sequential(self, variables):
        """Test that each new variable gets the next slot."""
        assert [variables.define(name, 0).slot for name in ("a", "b", "c")] == [0, 1, 2]
        assert variables.slot_of("b") == 1

    def test_set_keeps_slot(self, variables):
        """Test that overwriting a variable keeps its slot, even across kinds."""
        slot = variables.define("r", 1).slot
        variables.set("r", (1, 1, 1))
        assert variables.slot_of("r") == slot
        assert variables.get("r") == FuncBaseVector(1.0, 1.0, 1.0)

    def test_set_creates(self, variables):
        """Test that set() creates a missing variable."""
        variables.set("r", 4)
        assert variables.get("r") == FuncBaseScalar(4.0)

    def test_remove_retires_slot(self, variables):
        """Test that a removed slot is never handed out again."""
        old_slot = variables.define("r", 1).slot
        variables.remove("r")
        assert variables.find_slot(old_slot) is None
        assert not variables.has("r")

        new_slot = variables.define("r", 2).slot
        assert new_slot != old_slot
        assert variables.find_slot(old_slot) is None

    def test_remove_missing(self, variables):
        """Test that removing a missing variable fails."""
        with pytest.raises(FuncBaseVariableError, match="Undefined variable: 'r'"):
            variables.remove("r")

    def test_get_missing_suggests(self, variables):
        """Test that close names are suggested for a missing variable."""
        variables.define("radius", 1)
        with pytest.raises(FuncBaseVariableError) as exc_info:
            variables.get("radios")

        assert "radius" in exc_info.value.suggestion

    def test_store_slot(self, variables):
        """Test writing through a slot."""
        slot = variables.define("r", 1).slot
        assert variables.store_slot(slot, FuncBaseScalar(9.0))
        assert variables.get("r") == FuncBaseScalar(9.0)
        assert not variables.store_slot(99, FuncBaseScalar(1.0))

    @pytest.mark.parametrize("value", [True, None, {"a": 1}, (1, 2), (1, "a", 3)])
    def test_unconvertible_values(self, variables, value):
        """Test values with no FuncBase representation."""
        with pytest.raises(FuncBaseTypeConversionError):
            variables.define("r", value)

    def test_names_sorted(self, variables):
        """Test that names are listed in sorted order."""
        for name in ("c", "a", "b"):
            variables.define(name, 0)

        assert variables.names() == ["a", "b", "c"]


class TestCopy:
    """Test copying variables."""

    def test_copy(self, variables):
        """Test that a copy has its own slot and value."""
        variables.define("r", 1)
        copy = variables.copy("s", "r")
        assert copy.slot != variables.slot_of("r")

        variables.set("r", 2)
        assert variables.get("s") == FuncBaseScalar(1.0)

    def test_copy_replaces_existing(self, variables):
        """Test that copying onto an existing name replaces it with a new slot."""
        variables.define("r", 1)
        old_slot = variables.define("s", 5).slot
        variables.copy("s", "r")
        assert variables.get("s") == FuncBaseScalar(1.0)
        assert variables.slot_of("s") != old_slot

    def test_copy_missing(self, variables):
        """Test copying a variable that does not exist."""
        with pytest.raises(FuncBaseVariableError):
            variables.copy("s", "r")

    def test_copy_set(self, variables):
        """Test copying every variable that shares a prefix."""
        variables.define("shieldLength", 10)
        variables.define("shieldWidth", 4)
        variables.define("wallLength", 3)

        assert variables.copy_set("shield", "cover") == ["coverLength", "coverWidth"]
        assert variables.get("coverLength") == FuncBaseScalar(10.0)
        assert variables.get("coverWidth") == FuncBaseScalar(4.0)
        assert not variables.has("coverwallLength")

    def test_copy_set_no_match(self, variables):
        """Test that a prefix with no variables is an error."""
        variables.define("a", 1)
        with pytest.raises(FuncBaseVariableError, match="No variables start with 'zz'"):
            variables.copy_set("zz", "yy")


class TestActiveTracking:
    """Test active flags, listings and hashing."""

    def test_active_after_get(self, variables):
        """Test that reading a variable marks it active."""
        variables.define("a", 1)
        variables.define("b", 2)
        variables.get("b")
        assert variables.active_names() == ["b"]

        variables.reset_active()
        assert variables.active_names() == []

    def test_write_all(self, variables):
        """Test the full listing."""
        variables.define("b", 2)
        variables.define("a", (1, 0, 0))
        variables.define("c", "text value")
        stream = io.StringIO()
        variables.write_all(stream)
        assert stream.getvalue() == "a Vec3D(1.0, 0.0, 0.0)\nb 2.0\nc text value\n"

    def test_write_active(self, variables):
        """Test the listing of active variables only."""
        variables.define("a", 1)
        variables.define("b", 2)
        variables.get("a")
        stream = io.StringIO()
        variables.write_active(stream)
        assert stream.getvalue() == "a 1.0\n"

    def test_hash_tracks_active_values(self, variables):
        """Test that the hash depends only on active variables and their values."""
        variables.define("a", 1)
        variables.define("b", 2)
        empty_hash = variables.variable_hash()
        assert len(empty_hash) == 32

        variables.get("a")
        active_hash = variables.variable_hash()
        assert active_hash != empty_hash

        variables.set("b", 3)
        assert variables.variable_hash() == active_hash

        variables.set("a", 5)
        assert variables.variable_hash() != active_hash


class TestSnapshot:
    """Test JSON snapshots of variable values."""

    def test_to_dict(self, variables):
        """Test the snapshot layout."""
        variables.define("r", 2)
        variables.define("v", (1, 2, 3))
        variables.define("mat", "Void")
        assert variables.to_dict() == {
            "mat": {"type": "text", "value": "Void"},
            "r": {"type": "scalar", "value": 2.0},
            "v": {"type": "vector", "value": [1.0, 2.0, 3.0]},
        }

    def test_save_and_load(self, variables, tmp_path):
        """Test saving to and loading from a file."""
        variables.define("r", 2.5)
        variables.define("v", (1, 2, 3))
        path = tmp_path / "variables.json"
        variables.save(str(path))

        with open(path, encoding="utf-8") as f:
            assert "variables" in json.load(f)

        restored = FuncBaseVariables()
        restored.define("r", 0)
        restored.load(str(path))
        assert restored.get("r") == FuncBaseScalar(2.5)
        assert restored.get("v") == FuncBaseVector(1.0, 2.0, 3.0)
        assert restored.slot_of("r") == 0

    def test_load_malformed(self, variables):
        """Test that malformed snapshot entries are rejected."""
        with pytest.raises(FuncBaseVariableError, match="Invalid value for variable 'v'"):
            variables.update_from_dict({"v": {"type": "vector", "value": [1, 2]}})

        with pytest.raises(FuncBaseVariableError, match="Unknown variable type"):
            variables.update_from_dict({"m": {"type": "matrix", "value": 1}})

    @pytest.mark.parametrize("data,message", [
        ({"a": 3}, "Invalid entry for variable 'a'"),
        ({"a": None}, "Invalid entry for variable 'a'"),
        ({"v": {"type": "vector", "value": {"x": 1}}}, "Invalid value for variable 'v'"),
        ([1], "must be a mapping"),
        ("a", "must be a mapping"),
    ])
    def test_update_rejects_non_mappings(self, variables, data, message):
        """Test that entries and snapshots that are not mappings raise variable errors."""
        with pytest.raises(FuncBaseVariableError, match=message):
            variables.update_from_dict(data)

        assert len(variables) == 0

    def test_update_is_all_or_nothing(self, variables):
        """Test that a bad entry leaves every variable untouched."""
        variables.define("a", 1)
        with pytest.raises(FuncBaseVariableError, match="Invalid value for variable 'b'"):
            variables.update_from_dict({
                "a": {"type": "scalar", "value": 9},
                "b": {"type": "vector", "value": [1]},
            })

        assert variables.get("a") == FuncBaseScalar(1.0)
        assert not variables.has("b")

    def test_load_non_object(self, variables, tmp_path):
        """Test loading a file whose top level is not a JSON object."""
        path = tmp_path / "variables.json"
        path.write_text(json.dumps([1, 2]), encoding="utf-8")
        with pytest.raises(FuncBaseVariableError, match="must hold a JSON object"):
            variables.load(str(path))

    def test_load_non_object_entry(self, variables, tmp_path):
        """Test loading a file with a bare value in place of an entry."""
        variables.define("r", 1)
        path = tmp_path / "variables.json"
        path.write_text(json.dumps({"variables": {"q": 2, "r": {"value": 5}}}), encoding="utf-8")
        with pytest.raises(FuncBaseVariableError, match="Invalid entry for variable 'q'"):
            variables.load(str(path))

        assert variables.get("r") == FuncBaseScalar(1.0)
        assert not variables.has("q")
