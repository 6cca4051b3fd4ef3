"""Exception classes for FuncBase expression checking, compiling and evaluation."""

from typing import Optional


class FuncBaseError(Exception):
    """Base exception for FuncBase errors with detailed context information."""

    def __init__(
        self,
        message: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
        context: Optional[str] = None,
        suggestion: Optional[str] = None
    ):
        """
        Initialize detailed error.

        Args:
            message: Core error description
            position: Character position (in the whitespace-stripped expression) where the error occurred
            expression: Expression text being processed when the error occurred
            context: Additional context information
            suggestion: Suggestion for fixing the error
        """
        self.message = message
        self.position = position
        self.expression = expression
        self.context = context
        self.suggestion = suggestion

        super().__init__(self._format_detailed_message())

    def _format_detailed_message(self) -> str:
        """Format the error message with all available details."""
        parts = [f"Error: {self.message}"]

        if self.expression is not None:
            parts.append(f"Expression: {self.expression}")

            # Point at the offending character when we know where it is
            if self.position is not None:
                parts.append(f"            {' ' * self.position}^")

        if self.position is not None:
            parts.append(f"Position: {self.position}")

        if self.context:
            parts.append(f"Context: {self.context}")

        if self.suggestion:
            parts.append(f"Suggestion: {self.suggestion}")

        return "\n".join(parts)

    def with_expression(self, expression: str) -> 'FuncBaseError':
        """
        Attach the expression text to this error.

        Args:
            expression: Expression text that was being processed

        Returns:
            This error, with its message regenerated
        """
        self.expression = expression
        self.args = (self._format_detailed_message(),)
        return self

    def with_position(self, position: int) -> 'FuncBaseError':
        """
        Attach a character position to this error if it does not already have one.

        Args:
            position: Character position in the whitespace-stripped expression

        Returns:
            This error, with its message regenerated
        """
        if self.position is None:
            self.position = position
            self.args = (self._format_detailed_message(),)

        return self


class FuncBaseSyntaxError(FuncBaseError):
    """Structural problems found before any bytecode is emitted."""


class FuncBaseCompileError(FuncBaseError):
    """Errors found while translating a checked expression into bytecode."""


class FuncBaseEvalError(FuncBaseError):
    """Errors raised while executing a compiled program."""


class FuncBaseDivideByZeroError(FuncBaseEvalError):
    """Division or modulo by a zero scalar or zero vector component."""


class FuncBaseNumericDomainError(FuncBaseEvalError):
    """Argument outside the domain of an operation, or a result out of range."""


class FuncBaseUnknownSlotError(FuncBaseEvalError):
    """A program referenced a variable slot that no longer resolves."""


class FuncBaseTypeMismatchError(FuncBaseEvalError):
    """Operands of the wrong kind were given to an operator or function."""


class FuncBaseTypeConversionError(FuncBaseEvalError):
    """A value could not be converted to the kind the caller asked for."""


class FuncBaseVariableError(FuncBaseError):
    """Variable environment errors: duplicate definitions and missing names."""
