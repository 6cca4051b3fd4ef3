"""Bytecode definitions for the FuncBase virtual machine."""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Tuple

from funcbase.funcbase_function_table import FuncBaseFunctionTable
from funcbase.funcbase_value import FuncBaseValue


def _op(n: int, stack_effect: int = 0) -> Tuple[int, int]:
    """Helper to construct an Opcode value: (integer_value, stack_effect).

    stack_effect is the net change in runtime stack depth the opcode causes.  CALL_FUNCTION
    depends on the arity of the function called and is handled by Instruction.stack_effect().
    """
    return (n, stack_effect)


class Opcode(IntEnum):
    """Bytecode operation codes.

    Each member's value is a (integer_value, stack_effect) tuple.  The integer value is used
    for VM dispatch, and the stack_effect property drives the compiler's stack pointer.
    """

    _stack_effect: int  # Set in __new__; declared here so mypy knows the attribute exists

    def __new__(cls, int_value: int, stack_effect: int = 0) -> 'Opcode':
        obj = int.__new__(cls, int_value)
        obj._value_ = int_value
        obj._stack_effect = stack_effect
        return obj

    @property
    def stack_effect(self) -> int:
        """Net change in stack depth caused by this opcode."""
        return self._stack_effect

    # Values
    LOAD_CONST = _op(1, 1)              # Push baked literal
    LOAD_VAR = _op(2, 1)                # LOAD_VAR slot
    STORE_VAR = _op(3, 0)               # STORE_VAR slot  (value stays on the stack)
    POP_TOP = _op(4, -1)                # Discard a finished top-level statement

    # Operators
    ADD = _op(10, -1)
    SUB = _op(11, -1)
    MUL = _op(12, -1)
    DIV = _op(13, -1)
    MOD = _op(14, -1)
    POW = _op(15, -1)
    NEGATE = _op(16, 0)

    # Functions
    CALL_FUNCTION = _op(20, 0)          # CALL_FUNCTION code arity


BINARY_OPERATORS = {
    '+': Opcode.ADD,
    '-': Opcode.SUB,
    '*': Opcode.MUL,
    '/': Opcode.DIV,
    '%': Opcode.MOD,
    '^': Opcode.POW,
}


@dataclass
class Instruction:
    """Single bytecode instruction.

    arg1 holds a variable slot (LOAD_VAR, STORE_VAR) or a function code (CALL_FUNCTION),
    arg2 holds a function arity, and constant holds the literal pushed by LOAD_CONST.
    position is the index in the source text the instruction was compiled from.
    """
    opcode: Opcode
    arg1: int = 0
    arg2: int = 0
    constant: FuncBaseValue | None = None
    position: int = 0

    def stack_effect(self) -> int:
        """Return the net change in stack depth this instruction causes."""
        if self.opcode == Opcode.CALL_FUNCTION:
            return 1 - self.arg2

        return self.opcode.stack_effect

    def __repr__(self) -> str:
        """Human-readable representation."""
        if self.opcode == Opcode.LOAD_CONST:
            assert self.constant is not None
            return f"LOAD_CONST {self.constant.describe()}"

        if self.opcode in (Opcode.LOAD_VAR, Opcode.STORE_VAR):
            return f"{self.opcode.name} {self.arg1}"

        if self.opcode == Opcode.CALL_FUNCTION:
            return f"CALL_FUNCTION {self.arg1} {self.arg2}"

        return self.opcode.name


@dataclass
class FuncBaseProgram:
    """Compiled program: the linear instruction stream for one expression."""
    source: str
    instructions: List[Instruction] = field(default_factory=list)
    max_stack_depth: int = 0

    def slots(self) -> List[int]:
        """Return the sorted variable slots this program loads or stores."""
        return sorted({
            instr.arg1 for instr in self.instructions
            if instr.opcode in (Opcode.LOAD_VAR, Opcode.STORE_VAR)
        })

    def __len__(self) -> int:
        return len(self.instructions)

    def __repr__(self) -> str:
        return f"FuncBaseProgram({self.source!r}, {len(self.instructions)} instructions)"

    def disassemble(self, function_table: FuncBaseFunctionTable | None = None) -> str:
        """
        Return a readable listing of the program.

        Args:
            function_table: If given, function codes are annotated with function names
        """
        lines = [f"Program: {self.source}", f"  Max stack: {self.max_stack_depth}", "  Instructions:"]
        for i, instr in enumerate(self.instructions):
            line = f"    {i:3d}: {instr!r}"
            if function_table is not None and instr.opcode == Opcode.CALL_FUNCTION:
                definition = function_table.find_code(instr.arg1)
                if definition is not None:
                    line += f"  ; {definition.name}"

            lines.append(line)

        return "\n".join(lines)
