"""
Syntax checker for FuncBase expressions.

The checker makes a single left-to-right pass over a whitespace-stripped expression and
reports the first structural problem it finds, with the character position.  It runs before
the compiler so that syntax problems are always reported precisely and before any bytecode
has been emitted.  Unknown identifiers and function argument counts are left to the compiler.
"""

from dataclasses import dataclass
import re
from typing import List, Tuple

from funcbase.funcbase_function_table import FuncBaseFunctionTable
from funcbase.funcbase_variables import FuncBaseVariables


NUMBER_PATTERN = re.compile(r'(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')
IDENTIFIER_PATTERN = re.compile(r'[A-Za-z_][A-Za-z0-9_]*')


@dataclass(frozen=True)
class FuncBaseSyntaxIssue:
    """A syntax problem: what went wrong and where."""
    message: str
    position: int


class FuncBaseSyntaxChecker:
    """Validates the structure of an expression without changing any state."""

    def __init__(self, function_table: FuncBaseFunctionTable, variables: FuncBaseVariables) -> None:
        self._function_table = function_table
        self._variables = variables

    def check(self, expression: str) -> FuncBaseSyntaxIssue | None:
        """
        Check a whitespace-stripped expression.

        Args:
            expression: Expression with all whitespace removed

        Returns:
            None if the expression is well formed, otherwise the first issue found
        """
        if not expression:
            return FuncBaseSyntaxIssue("empty expression", 0)

        last = expression[-1]

        # Identifiers may end in '_', so it is a valid final character
        if not (last.isalnum() or last in ')]_'):
            return FuncBaseSyntaxIssue("symbol ends expression", len(expression) - 1)

        for statement, offset in self._split_statements(expression):
            if not statement:
                return FuncBaseSyntaxIssue("missing term before comma", offset)

            issue = self._check_assignment(statement, offset)
            if issue is not None:
                return issue

        return None

    def _split_statements(self, text: str) -> List[Tuple[str, int]]:
        """Split at top-level commas, returning each statement with its offset."""
        statements: List[Tuple[str, int]] = []
        depth = 0
        start = 0
        for i, c in enumerate(text):
            if c == '(':
                depth += 1

            elif c == ')':
                depth -= 1

            elif c == ',' and depth == 0:
                statements.append((text[start:i], start))
                start = i + 1

        statements.append((text[start:], start))
        return statements

    def _check_assignment(self, text: str, offset: int) -> FuncBaseSyntaxIssue | None:
        """Split at the first top-level '=' and check each side independently."""
        split = self._find_top_level_equals(text)
        if split is None:
            return self._scan(text, offset)

        target = text[:split]
        if not target:
            return FuncBaseSyntaxIssue("assignment has no target", offset)

        issue = self._scan(target, offset)
        if issue is not None:
            return issue

        if IDENTIFIER_PATTERN.fullmatch(target) is None:
            return FuncBaseSyntaxIssue("assignment target is not a variable", offset)

        if split + 1 == len(text):
            return FuncBaseSyntaxIssue("assignment has no value", offset + split)

        return self._check_assignment(text[split + 1:], offset + split + 1)

    def _find_top_level_equals(self, text: str) -> int | None:
        depth = 0
        for i, c in enumerate(text):
            if c == '(':
                depth += 1

            elif c == ')':
                depth -= 1

            elif c == '=' and depth == 0:
                return i

        return None

    def _scan(self, text: str, offset: int) -> FuncBaseSyntaxIssue | None:
        """
        Scan an expression (or one side of an assignment).

        The scan alternates between expecting an operand (number, identifier, bracket or
        unary minus) and expecting an operator (binary operator, comma or close bracket).
        """
        depth = 0
        func_depths: List[int] = []
        expect_operand = True
        after_unary = False

        # An identifier can only be assigned to if nothing but '(' ',' '=' or the start precedes it
        target_position = True
        target_candidate = False

        i = 0
        n = len(text)
        while i < n:
            c = text[i]
            pos = offset + i

            if expect_operand:
                if c == '-':
                    if after_unary:
                        return FuncBaseSyntaxIssue("operator follows operator", pos)

                    after_unary = True
                    target_position = False
                    i += 1
                    continue

                if c == '(':
                    depth += 1
                    after_unary = False
                    target_position = True
                    i += 1
                    continue

                number = NUMBER_PATTERN.match(text, i)
                if number is not None:
                    i = number.end()
                    expect_operand = False
                    after_unary = False
                    target_candidate = False
                    continue

                if c == '.':
                    return FuncBaseSyntaxIssue("malformed number", pos)

                identifier = IDENTIFIER_PATTERN.match(text, i)
                if identifier is not None:
                    name = identifier.group()
                    end = identifier.end()
                    following = text[end] if end < n else ''
                    definition = self._function_table.find(name)
                    if definition is not None:
                        if following != '(':
                            return FuncBaseSyntaxIssue("bracket does not follow function", offset + end)

                        closes_at_once = end + 1 < n and text[end + 1] == ')'
                        if definition.arity != 0 and closes_at_once:
                            return FuncBaseSyntaxIssue("no terms in a () function", offset + end + 1)

                        after_unary = False
                        target_candidate = False
                        if closes_at_once:
                            # A call with no arguments is a complete operand
                            expect_operand = False
                            i = end + 2
                            continue

                        depth += 1
                        func_depths.append(depth)
                        target_position = True
                        i = end + 1
                        continue

                    if following == '(':
                        if self._variables.has(name):
                            return FuncBaseSyntaxIssue("variable used as a function", offset + end)

                        # Unknown function name; keep checking its arguments and let the compiler report it
                        depth += 1
                        func_depths.append(depth)
                        after_unary = False
                        target_position = True
                        i = end + 1
                        continue

                    target_candidate = target_position and not after_unary
                    expect_operand = False
                    after_unary = False
                    i = end
                    continue

                if c == ')':
                    if depth == 0:
                        return FuncBaseSyntaxIssue("too many close brackets", pos)

                    return FuncBaseSyntaxIssue("missing term before close bracket", pos)

                if c == ',':
                    return FuncBaseSyntaxIssue("missing term before comma", pos)

                if c in '+*/%^=':
                    if i == 0 or text[i - 1] in '(,':
                        return FuncBaseSyntaxIssue("operator has no left operand", pos)

                    return FuncBaseSyntaxIssue("operator follows operator", pos)

                return FuncBaseSyntaxIssue(f"illegal character '{c}'", pos)

            # Expecting an operator
            if c in '+-*/%^':
                expect_operand = True
                target_position = False
                target_candidate = False
                i += 1
                continue

            if c == '=':
                if not target_candidate:
                    return FuncBaseSyntaxIssue("assignment target is not a variable", pos)

                expect_operand = True
                target_position = True
                target_candidate = False
                i += 1
                continue

            if c == ',':
                if depth > 0 and (not func_depths or func_depths[-1] != depth):
                    return FuncBaseSyntaxIssue("comma outside function arguments", pos)

                expect_operand = True
                target_position = True
                target_candidate = False
                i += 1
                continue

            if c == ')':
                if depth == 0:
                    return FuncBaseSyntaxIssue("too many close brackets", pos)

                if func_depths and func_depths[-1] == depth:
                    func_depths.pop()

                depth -= 1
                target_candidate = False
                i += 1
                continue

            if c == '(':
                return FuncBaseSyntaxIssue("missing operator before bracket", pos)

            if c.isalnum() or c in '._':
                return FuncBaseSyntaxIssue("missing operator", pos)

            return FuncBaseSyntaxIssue(f"illegal character '{c}'", pos)

        if depth > 0:
            return FuncBaseSyntaxIssue("unmatched open bracket", offset + n)

        if expect_operand:
            return FuncBaseSyntaxIssue("expression ends with operator", offset + n)

        return None
