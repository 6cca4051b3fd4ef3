"""FuncBase Virtual Machine - executes compiled expression programs."""

import math
from typing import Any, Callable, List, Tuple

from funcbase.funcbase_bytecode import FuncBaseProgram, Instruction, Opcode
from funcbase.funcbase_error import (
    FuncBaseDivideByZeroError, FuncBaseEvalError, FuncBaseNumericDomainError,
    FuncBaseTypeMismatchError, FuncBaseUnknownSlotError
)
from funcbase.funcbase_function_table import FuncBaseFunctionTable
from funcbase.funcbase_math import FuncBaseMathFunctions
from funcbase.funcbase_value import FuncBaseScalar, FuncBaseValue, FuncBaseVector
from funcbase.funcbase_variables import FuncBaseVariables


class FuncBaseVM:
    """
    Stack machine for executing FuncBase programs.

    Programs are straight-line code: no jumps and no frames.  Variables are reached through
    the slot indices baked into LOAD_VAR and STORE_VAR, resolved against the environment
    passed to execute() each time the program runs.
    """

    def __init__(self, function_table: FuncBaseFunctionTable) -> None:
        """
        Initialize the VM.

        Args:
            function_table: Function table the programs were compiled against

        Raises:
            RuntimeError: If a function in the table has no implementation
        """
        self.stack: List[FuncBaseValue] = []
        self._variables: FuncBaseVariables | None = None

        # Function array indexed by function code, for direct lookup in CALL_FUNCTION
        implementations = FuncBaseMathFunctions().get_functions()
        self._function_array: List[Callable[[List[FuncBaseValue]], FuncBaseValue]] = []
        for definition in function_table:
            impl = implementations.get(definition.name)
            if impl is None:
                raise RuntimeError(f"Function '{definition.name}' has no implementation")

            self._function_array.append(impl)

        self._dispatch_table = self._build_dispatch_table()

    def _build_dispatch_table(self) -> List[Any]:
        """Build the opcode-indexed jump table used by execute()."""
        table: List[Any] = [None] * 32
        table[Opcode.LOAD_CONST] = self._op_load_const
        table[Opcode.LOAD_VAR] = self._op_load_var
        table[Opcode.STORE_VAR] = self._op_store_var
        table[Opcode.POP_TOP] = self._op_pop_top
        table[Opcode.ADD] = self._op_add
        table[Opcode.SUB] = self._op_sub
        table[Opcode.MUL] = self._op_mul
        table[Opcode.DIV] = self._op_div
        table[Opcode.MOD] = self._op_mod
        table[Opcode.POW] = self._op_pow
        table[Opcode.NEGATE] = self._op_negate
        table[Opcode.CALL_FUNCTION] = self._op_call_function
        return table

    def execute(self, program: FuncBaseProgram, variables: FuncBaseVariables) -> FuncBaseValue:
        """
        Execute a program and return its result.

        Assignments made before a failing instruction are not rolled back.

        Args:
            program: Compiled program
            variables: Environment the program's slots refer to

        Returns:
            The single value the program leaves on the stack

        Raises:
            FuncBaseEvalError: If an instruction fails.  The error's position is the source position
                of the failing instruction.
        """
        self.stack = []
        self._variables = variables
        dispatch = self._dispatch_table

        try:
            for instr in program.instructions:
                handler = dispatch[instr.opcode]
                if handler is None:
                    raise FuncBaseEvalError(f"Unimplemented opcode: {instr.opcode}", position=instr.position)

                try:
                    handler(instr)

                except FuncBaseEvalError as e:
                    e.with_position(instr.position)
                    raise

        finally:
            self._variables = None

        if len(self.stack) != 1:
            raise FuncBaseEvalError(f"Program left {len(self.stack)} values on the stack")

        return self.stack.pop()

    def _op_load_const(self, instr: Instruction) -> None:
        """LOAD_CONST: Push the baked literal."""
        assert instr.constant is not None
        self.stack.append(instr.constant)

    def _op_load_var(self, instr: Instruction) -> None:
        """LOAD_VAR: Push the current value of the variable in slot arg1."""
        assert self._variables is not None
        variable = self._variables.find_slot(instr.arg1)
        if variable is None:
            raise FuncBaseUnknownSlotError(
                f"Variable slot {instr.arg1} no longer exists",
                suggestion="The variable was removed after the expression was parsed; parse it again"
            )

        variable.active = True
        self.stack.append(variable.value)

    def _op_store_var(self, instr: Instruction) -> None:
        """STORE_VAR: Write the top of stack to slot arg1, leaving it on the stack."""
        assert self._variables is not None
        if not self._variables.store_slot(instr.arg1, self.stack[-1]):
            raise FuncBaseUnknownSlotError(
                f"Variable slot {instr.arg1} no longer exists",
                suggestion="The variable was removed after the expression was parsed; parse it again"
            )

    def _op_pop_top(self, _instr: Instruction) -> None:
        """POP_TOP: Discard the value of a finished statement."""
        self.stack.pop()

    def _pop_pair(self) -> Tuple[FuncBaseValue, FuncBaseValue]:
        b = self.stack.pop()
        a = self.stack.pop()
        return a, b

    def _mismatch(self, op: str, a: FuncBaseValue, b: FuncBaseValue) -> FuncBaseTypeMismatchError:
        return FuncBaseTypeMismatchError(f"Cannot apply '{op}' to {a.type_name()} and {b.type_name()}")

    def _op_add(self, _instr: Instruction) -> None:
        """ADD: Scalar + scalar or vector + vector."""
        a, b = self._pop_pair()
        if isinstance(a, FuncBaseScalar) and isinstance(b, FuncBaseScalar):
            self.stack.append(FuncBaseScalar(a.value + b.value))
            return

        if isinstance(a, FuncBaseVector) and isinstance(b, FuncBaseVector):
            self.stack.append(FuncBaseVector(a.x + b.x, a.y + b.y, a.z + b.z))
            return

        raise self._mismatch('+', a, b)

    def _op_sub(self, _instr: Instruction) -> None:
        """SUB: Scalar - scalar or vector - vector."""
        a, b = self._pop_pair()
        if isinstance(a, FuncBaseScalar) and isinstance(b, FuncBaseScalar):
            self.stack.append(FuncBaseScalar(a.value - b.value))
            return

        if isinstance(a, FuncBaseVector) and isinstance(b, FuncBaseVector):
            self.stack.append(FuncBaseVector(a.x - b.x, a.y - b.y, a.z - b.z))
            return

        raise self._mismatch('-', a, b)

    def _op_mul(self, _instr: Instruction) -> None:
        """MUL: Scalar product, scalar-vector scaling, or vector cross product."""
        a, b = self._pop_pair()
        if isinstance(a, FuncBaseScalar):
            if isinstance(b, FuncBaseScalar):
                self.stack.append(FuncBaseScalar(a.value * b.value))
                return

            if isinstance(b, FuncBaseVector):
                self.stack.append(FuncBaseVector(a.value * b.x, a.value * b.y, a.value * b.z))
                return

        elif isinstance(a, FuncBaseVector):
            if isinstance(b, FuncBaseScalar):
                self.stack.append(FuncBaseVector(a.x * b.value, a.y * b.value, a.z * b.value))
                return

            if isinstance(b, FuncBaseVector):
                self.stack.append(a.cross(b))
                return

        raise self._mismatch('*', a, b)

    def _op_div(self, _instr: Instruction) -> None:
        """DIV: Division, component-wise wherever a vector is involved."""
        a, b = self._pop_pair()
        if isinstance(b, FuncBaseScalar):
            if not isinstance(a, (FuncBaseScalar, FuncBaseVector)):
                raise self._mismatch('/', a, b)

            if b.value == 0.0:
                raise FuncBaseDivideByZeroError("Division by zero")

            if isinstance(a, FuncBaseScalar):
                self.stack.append(FuncBaseScalar(a.value / b.value))

            else:
                self.stack.append(FuncBaseVector(a.x / b.value, a.y / b.value, a.z / b.value))

            return

        if isinstance(b, FuncBaseVector):
            if 0.0 in b.components():
                raise FuncBaseDivideByZeroError(
                    "Division by a vector with a zero component",
                    context=f"Divisor: {b.describe()}"
                )

            if isinstance(a, FuncBaseScalar):
                self.stack.append(FuncBaseVector(a.value / b.x, a.value / b.y, a.value / b.z))
                return

            if isinstance(a, FuncBaseVector):
                self.stack.append(FuncBaseVector(a.x / b.x, a.y / b.y, a.z / b.z))
                return

        raise self._mismatch('/', a, b)

    def _op_mod(self, _instr: Instruction) -> None:
        """MOD: Remainder of the truncated operands, with the sign of the dividend."""
        a, b = self._pop_pair()
        if not (isinstance(a, FuncBaseScalar) and isinstance(b, FuncBaseScalar)):
            raise self._mismatch('%', a, b)

        if not (math.isfinite(a.value) and math.isfinite(b.value)):
            raise FuncBaseNumericDomainError(f"Modulo of non-finite values: {a.value!r} % {b.value!r}")

        divisor = math.trunc(b.value)
        if divisor == 0:
            raise FuncBaseDivideByZeroError("Modulo by zero")

        self.stack.append(FuncBaseScalar(math.fmod(math.trunc(a.value), divisor)))

    def _op_pow(self, _instr: Instruction) -> None:
        """POW: Real exponentiation of scalars."""
        a, b = self._pop_pair()
        if not (isinstance(a, FuncBaseScalar) and isinstance(b, FuncBaseScalar)):
            raise self._mismatch('^', a, b)

        base = a.value
        exponent = b.value
        if base == 0.0 and exponent < 0.0:
            raise FuncBaseDivideByZeroError(f"Zero raised to a negative power: 0 ^ {exponent!r}")

        if base < 0.0 and not exponent.is_integer():
            raise FuncBaseNumericDomainError(
                f"Negative base with a non-integer exponent: {base!r} ^ {exponent!r}"
            )

        try:
            self.stack.append(FuncBaseScalar(math.pow(base, exponent)))

        except OverflowError as e:
            raise FuncBaseNumericDomainError(f"Result of {base!r} ^ {exponent!r} is out of range") from e

    def _op_negate(self, _instr: Instruction) -> None:
        """NEGATE: Negate a scalar or every component of a vector."""
        a = self.stack.pop()
        if isinstance(a, FuncBaseScalar):
            self.stack.append(FuncBaseScalar(-a.value))
            return

        if isinstance(a, FuncBaseVector):
            self.stack.append(FuncBaseVector(-a.x, -a.y, -a.z))
            return

        raise FuncBaseTypeMismatchError(f"Cannot negate {a.type_name()}")

    def _op_call_function(self, instr: Instruction) -> None:
        """CALL_FUNCTION: Call builtin arg1 with the top arg2 values as arguments."""
        arity = instr.arg2
        if arity == 0:
            args: List[FuncBaseValue] = []

        else:
            args = self.stack[-arity:]
            del self.stack[-arity:]

        func = self._function_array[instr.arg1]
        self.stack.append(func(args))
