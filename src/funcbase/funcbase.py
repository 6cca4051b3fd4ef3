"""Main FuncBase class: compile expressions once, evaluate them against live variables."""

import logging
from typing import Any, List

from funcbase.funcbase_bytecode import FuncBaseProgram
from funcbase.funcbase_compiler import FuncBaseCompiler
from funcbase.funcbase_error import (
    FuncBaseCompileError, FuncBaseError, FuncBaseEvalError, FuncBaseSyntaxError, FuncBaseVariableError
)
from funcbase.funcbase_function_table import FuncBaseFunctionTable
from funcbase.funcbase_syntax_checker import FuncBaseSyntaxChecker
from funcbase.funcbase_value import FuncBaseValue, coerce_value
from funcbase.funcbase_variables import FuncBaseVariable, FuncBaseVariables
from funcbase.funcbase_vm import FuncBaseVM


class FuncBase:
    """
    Expression compiler and evaluator over a named-value environment.

    A FuncBase holds one variable environment and at most one compiled program.  parse()
    checks and compiles an expression, replacing the held program only if it succeeds.
    evaluate() runs the held program against the current variable values, so the same
    program can be evaluated again after variables change.

    Typed accessors (eval_var, eval_pair and friends) read variables directly, with
    default-value and multi-name fallback lookups.
    """

    # Logger for the class
    _logger = logging.getLogger("FuncBase")

    def __init__(
        self,
        function_table: FuncBaseFunctionTable | None = None,
        variables: FuncBaseVariables | None = None,
        max_depth: int = 100
    ) -> None:
        """
        Initialize FuncBase.

        Args:
            function_table: Builtin functions; the standard table if not given
            variables: Variable environment; a new empty environment if not given
            max_depth: Maximum expression nesting accepted by the compiler
        """
        self.function_table = function_table if function_table is not None else FuncBaseFunctionTable.create_default()
        self.variables = variables if variables is not None else FuncBaseVariables()
        self.max_depth = max_depth

        self._checker = FuncBaseSyntaxChecker(self.function_table, self.variables)
        self._compiler = FuncBaseCompiler(self.function_table, self.variables, max_depth)
        self._vm = FuncBaseVM(self.function_table)
        self._program: FuncBaseProgram | None = None

    @property
    def program(self) -> FuncBaseProgram | None:
        """The most recently parsed program, if any."""
        return self._program

    def parse(self, expression: str) -> FuncBaseProgram:
        """
        Check and compile an expression, making it the current program.

        All whitespace is removed first, so error positions refer to the stripped text.

        Args:
            expression: Expression text

        Returns:
            The compiled program

        Raises:
            FuncBaseSyntaxError: If the expression is malformed
            FuncBaseCompileError: If an identifier is unknown or a function gets the wrong number of arguments
        """
        text = ''.join(expression.split())

        issue = self._checker.check(text)
        if issue is not None:
            self._logger.warning("syntax error in '%s' at position %d: %s", text, issue.position, issue.message)
            raise FuncBaseSyntaxError(issue.message, position=issue.position, expression=text)

        try:
            program = self._compiler.compile(text)

        except FuncBaseCompileError as e:
            self._logger.warning("compile error in '%s' at position %s: %s", text, e.position, e.message)
            raise e.with_expression(text)

        self._program = program
        self._logger.debug("parsed '%s' into %d instructions", text, len(program))
        return program

    def evaluate(self, kind: Any = None) -> Any:
        """
        Evaluate the current program.

        Args:
            kind: Result kind passed to coerce_value(); None returns the FuncBaseValue

        Returns:
            The result, converted to kind

        Raises:
            FuncBaseError: If no expression has been parsed
            FuncBaseEvalError: If evaluation fails
        """
        if self._program is None:
            raise FuncBaseError("No expression has been parsed", suggestion="Call parse() before evaluate()")

        try:
            value = self._vm.execute(self._program, self.variables)

        except FuncBaseEvalError as e:
            raise e.with_expression(self._program.source)

        return coerce_value(value, kind)

    def evaluate_expression(self, expression: str, kind: Any = None) -> Any:
        """Parse an expression and evaluate it."""
        self.parse(expression)
        return self.evaluate(kind)

    def define_and_evaluate(self, name: str, expression: str, kind: Any = None) -> Any:
        """
        Evaluate an expression and store the result in a variable.

        The variable is created if it does not exist, otherwise overwritten.

        Args:
            name: Variable to store the result in
            expression: Expression text
            kind: Result kind passed to coerce_value()

        Returns:
            The stored value, converted to kind
        """
        self.parse(expression)
        value = self.evaluate()
        self.variables.set(name, value)
        return coerce_value(value, kind)

    def disassemble(self) -> str:
        """Return a listing of the current program."""
        if self._program is None:
            raise FuncBaseError("No expression has been parsed")

        return self._program.disassemble(self.function_table)

    def has_variable(self, name: str) -> bool:
        return self.variables.has(name)

    def set_variable(self, name: str, value: Any) -> FuncBaseVariable:
        return self.variables.set(name, value)

    def define_variable(self, name: str, value: Any) -> FuncBaseVariable:
        return self.variables.define(name, value)

    def remove_variable(self, name: str) -> None:
        self.variables.remove(name)

    def copy_variable(self, new_name: str, old_name: str) -> FuncBaseVariable:
        return self.variables.copy(new_name, old_name)

    def copy_variable_set(self, old_head: str, new_head: str) -> List[str]:
        return self.variables.copy_set(old_head, new_head)

    def variable_names(self) -> List[str]:
        return self.variables.names()

    def eval_var(self, name: str, kind: Any = float) -> Any:
        """
        Read a variable, converted to kind.

        Raises:
            FuncBaseVariableError: If the variable does not exist
            FuncBaseTypeConversionError: If the value is not of a compatible kind
        """
        return coerce_value(self.variables.get(name), kind)

    def eval_def_var(self, name: str, default: Any, kind: Any = float) -> Any:
        """Read a variable converted to kind, or return default if it does not exist."""
        if not self.variables.has(name):
            return default

        return coerce_value(self.variables.get(name), kind)

    def _first_value(self, names: List[str]) -> FuncBaseValue | None:
        for name in names:
            if self.variables.has(name):
                return self.variables.get(name)

        return None

    def eval_pair(self, key_a: str, key_b: str, kind: Any = float, tail: str = "") -> Any:
        """
        Read key_a + tail, falling back to key_b + tail.

        Raises:
            FuncBaseVariableError: If neither variable exists
        """
        names = [key_a + tail, key_b + tail]
        value = self._first_value(names)
        if value is None:
            raise FuncBaseVariableError(f"No variables found: {', '.join(names)}")

        return coerce_value(value, kind)

    def eval_def_pair(self, key_a: str, key_b: str, default: Any, kind: Any = float, tail: str = "") -> Any:
        """Read key_a + tail, falling back to key_b + tail, then to default."""
        value = self._first_value([key_a + tail, key_b + tail])
        if value is None:
            return default

        return coerce_value(value, kind)

    def eval_triple(self, key_a: str, key_b: str, key_c: str, kind: Any = float, tail: str = "") -> Any:
        """
        Read the first of key_a + tail, key_b + tail and key_c + tail that exists.

        Raises:
            FuncBaseVariableError: If none of the variables exist
        """
        names = [key_a + tail, key_b + tail, key_c + tail]
        value = self._first_value(names)
        if value is None:
            raise FuncBaseVariableError(f"No variables found: {', '.join(names)}")

        return coerce_value(value, kind)

    def save_variables(self, path: str) -> None:
        """Save a JSON snapshot of the variable values."""
        self.variables.save(path)

    def load_variables(self, path: str) -> None:
        """Load variable values from a JSON snapshot, creating or overwriting variables."""
        self.variables.load(path)

    def variable_hash(self) -> str:
        """Return the MD5 hex digest of the variables read since the last reset_active()."""
        return self.variables.variable_hash()

    def reset_active(self) -> None:
        self.variables.reset_active()
