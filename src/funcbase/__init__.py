"""FuncBase expression compiler and evaluator package."""

# Main API
from funcbase.funcbase import FuncBase

# Exceptions
from funcbase.funcbase_error import (
    FuncBaseError, FuncBaseSyntaxError, FuncBaseCompileError, FuncBaseEvalError,
    FuncBaseDivideByZeroError, FuncBaseNumericDomainError, FuncBaseUnknownSlotError,
    FuncBaseTypeMismatchError, FuncBaseTypeConversionError, FuncBaseVariableError
)

# Value types
from funcbase.funcbase_value import (
    FuncBaseValue, FuncBaseScalar, FuncBaseVector, FuncBaseText, make_value, coerce_value
)

# Lower-level components (for advanced usage)
from funcbase.funcbase_bytecode import Opcode, Instruction, FuncBaseProgram
from funcbase.funcbase_compiler import FuncBaseCompiler
from funcbase.funcbase_function_table import FuncBaseFunctionDef, FuncBaseFunctionTable
from funcbase.funcbase_syntax_checker import FuncBaseSyntaxChecker, FuncBaseSyntaxIssue
from funcbase.funcbase_variables import FuncBaseVariable, FuncBaseVariables
from funcbase.funcbase_vm import FuncBaseVM


__all__ = [
    # Main API
    "FuncBase",

    # Exceptions
    "FuncBaseError", "FuncBaseSyntaxError", "FuncBaseCompileError", "FuncBaseEvalError",
    "FuncBaseDivideByZeroError", "FuncBaseNumericDomainError", "FuncBaseUnknownSlotError",
    "FuncBaseTypeMismatchError", "FuncBaseTypeConversionError", "FuncBaseVariableError",

    # Value types
    "FuncBaseValue", "FuncBaseScalar", "FuncBaseVector", "FuncBaseText", "make_value", "coerce_value",

    # Lower-level components
    "Opcode", "Instruction", "FuncBaseProgram", "FuncBaseCompiler", "FuncBaseFunctionDef",
    "FuncBaseFunctionTable", "FuncBaseSyntaxChecker", "FuncBaseSyntaxIssue", "FuncBaseVariable",
    "FuncBaseVariables", "FuncBaseVM"
]
