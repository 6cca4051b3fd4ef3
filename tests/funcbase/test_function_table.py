"""Tests for the builtin function table and the bytecode definitions."""

import pytest

from funcbase import FuncBaseFunctionDef, FuncBaseFunctionTable, FuncBaseVM, Instruction, Opcode


class TestFunctionTable:
    """Test function registration and lookup."""

    def test_standard_table(self):
        """Test the standard function set."""
        table = FuncBaseFunctionTable.create_default()
        assert len(table) == 38
        assert "sin" in table
        assert "pow" not in table
        assert table.find("vec3d") == FuncBaseFunctionDef("vec3d", table.find("vec3d").code, 3)
        assert table.find("atan2").arity == 2

    def test_codes_follow_order(self):
        """Test that codes are assigned in registration order."""
        table = FuncBaseFunctionTable([("first", 1), ("second", 2)])
        assert [definition.code for definition in table] == [0, 1]
        assert table.find_code(1).name == "second"
        assert table.find_code(2) is None
        assert table.find_code(-1) is None
        assert table.names() == ["first", "second"]

    @pytest.mark.parametrize("functions,message", [
        ([("sin", 1), ("sin", 1)], "registered twice"),
        ([("2sin", 1)], "not an identifier"),
        ([("sin", -1)], "negative arity"),
    ])
    def test_invalid_tables(self, functions, message):
        """Test tables that cannot be built."""
        with pytest.raises(ValueError, match=message):
            FuncBaseFunctionTable(functions)

    def test_vm_requires_implementations(self):
        """Test that the VM rejects a function it cannot run."""
        with pytest.raises(RuntimeError, match="'mystery' has no implementation"):
            FuncBaseVM(FuncBaseFunctionTable([("sin", 1), ("mystery", 1)]))


class TestBytecode:
    """Test opcode stack effects and instruction formatting."""

    @pytest.mark.parametrize("opcode,effect", [
        (Opcode.LOAD_CONST, 1),
        (Opcode.LOAD_VAR, 1),
        (Opcode.STORE_VAR, 0),
        (Opcode.POP_TOP, -1),
        (Opcode.ADD, -1),
        (Opcode.POW, -1),
        (Opcode.NEGATE, 0),
    ])
    def test_stack_effects(self, opcode, effect):
        """Test the static stack effect of each opcode."""
        assert Instruction(opcode).stack_effect() == effect

    @pytest.mark.parametrize("arity,effect", [(0, 1), (1, 0), (3, -2)])
    def test_call_stack_effect(self, arity, effect):
        """Test that calls pop their arguments and push one result."""
        assert Instruction(Opcode.CALL_FUNCTION, arg1=0, arg2=arity).stack_effect() == effect

    def test_instruction_repr(self):
        """Test instruction formatting."""
        assert repr(Instruction(Opcode.LOAD_VAR, arg1=4)) == "LOAD_VAR 4"
        assert repr(Instruction(Opcode.CALL_FUNCTION, arg1=7, arg2=2)) == "CALL_FUNCTION 7 2"
        assert repr(Instruction(Opcode.MUL)) == "MUL"
