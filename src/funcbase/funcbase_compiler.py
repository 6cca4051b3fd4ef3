"""
FuncBase compiler - translates checked expressions into bytecode programs.

The compiler is a recursive-descent, precedence-climbing translator.  Each precedence level
compiles the next tighter-binding level and then consumes its own operators:

    expression      comma-separated list
    assignment      name = value
    additive        + -
    multiplicative  * / %
    unary minus     -x
    power           ^ (right associative)
    element         (bracket), number, function call, variable

A compile-time stack pointer tracks how many values the program would leave on the runtime
stack.  It is used to check function argument counts and to confirm that a finished program
leaves exactly one value.
"""

import difflib
import logging
from typing import List

from funcbase.funcbase_bytecode import BINARY_OPERATORS, FuncBaseProgram, Instruction, Opcode
from funcbase.funcbase_error import FuncBaseCompileError
from funcbase.funcbase_function_table import FuncBaseFunctionDef, FuncBaseFunctionTable
from funcbase.funcbase_syntax_checker import IDENTIFIER_PATTERN, NUMBER_PATTERN
from funcbase.funcbase_value import FuncBaseScalar, FuncBaseValue, FuncBaseVector
from funcbase.funcbase_variables import FuncBaseVariables


class FuncBaseCompiler:
    """Compiles a syntax-checked expression into a FuncBaseProgram."""

    _logger = logging.getLogger("FuncBaseCompiler")

    def __init__(
        self,
        function_table: FuncBaseFunctionTable,
        variables: FuncBaseVariables,
        max_depth: int = 100
    ) -> None:
        """
        Initialize the compiler.

        Args:
            function_table: Builtin functions that may be called
            variables: Environment used to resolve variable names to slots
            max_depth: Maximum nesting of brackets, unary minus and powers
        """
        self._function_table = function_table
        self._variables = variables
        self.max_depth = max_depth

        self._text = ""
        self._instructions: List[Instruction] = []
        self._stack_ptr = 0
        self._max_stack = 0
        self._depth = 0

    def compile(self, expression: str) -> FuncBaseProgram:
        """
        Compile an expression.

        Args:
            expression: Whitespace-stripped expression that has passed the syntax checker

        Returns:
            Compiled program

        Raises:
            FuncBaseCompileError: If an identifier is unknown, a function is given the wrong number
                of arguments, or the expression is malformed
        """
        self._text = expression
        self._instructions = []
        self._stack_ptr = 0
        self._max_stack = 0
        self._depth = 0

        end = self._compile_expression(0, sequence=True)
        if end != len(expression):
            raise FuncBaseCompileError(f"Unexpected character '{expression[end]}'", position=end)

        if self._stack_ptr != 1:
            raise FuncBaseCompileError(
                f"Expression leaves {self._stack_ptr} values instead of one",
                position=len(expression)
            )

        program = FuncBaseProgram(expression, self._instructions, self._max_stack)
        self._instructions = []
        self._logger.debug("compiled '%s' to %d instructions", expression, len(program))
        return program

    def _peek(self, index: int) -> str:
        """Return the character at index, or '' past the end."""
        return self._text[index] if index < len(self._text) else ''

    def _emit(self, instruction: Instruction) -> None:
        self._instructions.append(instruction)
        self._stack_ptr += instruction.stack_effect()
        if self._stack_ptr > self._max_stack:
            self._max_stack = self._stack_ptr

    def _pop_last(self) -> Instruction:
        instruction = self._instructions.pop()
        self._stack_ptr -= instruction.stack_effect()
        return instruction

    def _compile_expression(self, index: int, sequence: bool) -> int:
        """
        Compile a comma-separated list of assignments.

        Args:
            index: Start position
            sequence: True at the top level, where each value but the last is discarded.
                False for function arguments, where every value stays on the stack.

        Returns:
            Position after the list
        """
        index = self._compile_assignment(index)
        while self._peek(index) == ',':
            if sequence:
                self._emit(Instruction(Opcode.POP_TOP, position=index))

            index = self._compile_assignment(index + 1)

        return index

    def _compile_assignment(self, index: int) -> int:
        """Compile 'name = value', or fall through to an additive expression."""
        start = len(self._instructions)
        end = self._compile_additive(index)
        if self._peek(end) != '=':
            return end

        emitted = self._instructions[start:]
        if len(emitted) != 1 or emitted[0].opcode != Opcode.LOAD_VAR:
            raise FuncBaseCompileError("Assignment target is not a variable", position=index)

        # The target's LOAD_VAR is replaced by a STORE_VAR after the value
        target = self._pop_last()
        end = self._compile_assignment(end + 1)
        self._emit(Instruction(Opcode.STORE_VAR, arg1=target.arg1, position=target.position))
        return end

    def _compile_additive(self, index: int) -> int:
        index = self._compile_multiplicative(index)
        op = self._peek(index)
        while op in ('+', '-'):
            position = index
            index = self._compile_multiplicative(index + 1)
            self._emit(Instruction(BINARY_OPERATORS[op], position=position))
            op = self._peek(index)

        return index

    def _compile_multiplicative(self, index: int) -> int:
        index = self._compile_unary_minus(index)
        op = self._peek(index)
        while op in ('*', '/', '%'):
            position = index
            index = self._compile_unary_minus(index + 1)
            self._emit(Instruction(BINARY_OPERATORS[op], position=position))
            op = self._peek(index)

        return index

    def _compile_unary_minus(self, index: int) -> int:
        """
        Compile an optional leading '-' and the power expression after it.

        Negating a literal folds into the literal, and negating a negation cancels both.
        """
        self._depth += 1
        if self._depth > self.max_depth:
            raise FuncBaseCompileError(
                f"Expression nested too deeply (limit {self.max_depth})",
                position=index
            )

        try:
            if self._peek(index) != '-':
                return self._compile_power(index)

            end = self._compile_power(index + 1)
            last = self._instructions[-1]
            if last.opcode == Opcode.LOAD_CONST:
                assert last.constant is not None
                last.constant = self._negate_constant(last.constant)
                last.position = index

            elif last.opcode == Opcode.NEGATE:
                self._pop_last()

            else:
                self._emit(Instruction(Opcode.NEGATE, position=index))

            return end

        finally:
            self._depth -= 1

    def _negate_constant(self, value: FuncBaseValue) -> FuncBaseValue:
        if isinstance(value, FuncBaseScalar):
            return FuncBaseScalar(-value.value)

        if isinstance(value, FuncBaseVector):
            return FuncBaseVector(-value.x, -value.y, -value.z)

        raise FuncBaseCompileError(f"Cannot negate a {value.type_name()} literal")

    def _compile_power(self, index: int) -> int:
        """Compile 'a ^ b'; the right side recurses into unary minus, making '^' right associative."""
        index = self._compile_element(index)
        while self._peek(index) == '^':
            position = index
            index = self._compile_unary_minus(index + 1)
            self._emit(Instruction(Opcode.POW, position=position))

        return index

    def _compile_element(self, index: int) -> int:
        """Compile a bracketed expression, a number, a function call or a variable."""
        c = self._peek(index)
        if c == '(':
            stack_before = self._stack_ptr
            end = self._compile_expression(index + 1, sequence=False)
            if self._peek(end) != ')':
                raise FuncBaseCompileError("Unterminated bracket", position=end)

            if self._stack_ptr != stack_before + 1:
                raise FuncBaseCompileError("Bracketed expression must produce exactly one value", position=index)

            return end + 1

        number = NUMBER_PATTERN.match(self._text, index)
        if number is not None:
            self._emit(Instruction(
                Opcode.LOAD_CONST,
                constant=FuncBaseScalar(float(number.group())),
                position=index
            ))
            return number.end()

        identifier = IDENTIFIER_PATTERN.match(self._text, index)
        if identifier is None:
            if not c:
                raise FuncBaseCompileError("Unexpected end of expression", position=index)

            raise FuncBaseCompileError(f"Unexpected character '{c}'", position=index)

        name = identifier.group()
        definition = self._function_table.find(name)
        if definition is not None:
            return self._compile_function_call(definition, index, identifier.end())

        variable = self._variables.find(name)
        if variable is not None:
            self._emit(Instruction(Opcode.LOAD_VAR, arg1=variable.slot, position=index))
            return identifier.end()

        candidates = self._variables.names() + self._function_table.names()
        similar = difflib.get_close_matches(name, candidates, n=3, cutoff=0.6)
        raise FuncBaseCompileError(
            f"Unknown identifier: '{name}'",
            position=index,
            suggestion=f"Did you mean: {', '.join(similar)}?" if similar else "Define the variable before using it"
        )

    def _compile_function_call(self, definition: FuncBaseFunctionDef, start: int, index: int) -> int:
        """
        Compile a function's argument list and the call.

        Args:
            definition: Function being called
            start: Position of the function name
            index: Position just after the function name

        Returns:
            Position after the closing bracket
        """
        if self._peek(index) != '(':
            raise FuncBaseCompileError(f"Bracket does not follow function '{definition.name}'", position=index)

        stack_before = self._stack_ptr
        index += 1
        if self._peek(index) != ')':
            index = self._compile_expression(index, sequence=False)
            if self._peek(index) != ')':
                raise FuncBaseCompileError("Unterminated bracket", position=index)

        argument_count = self._stack_ptr - stack_before
        if argument_count != definition.arity:
            raise FuncBaseCompileError(
                f"Function '{definition.name}' takes {definition.arity} argument(s), got {argument_count}",
                position=start
            )

        self._emit(Instruction(
            Opcode.CALL_FUNCTION,
            arg1=definition.code,
            arg2=definition.arity,
            position=start
        ))
        return index + 1
