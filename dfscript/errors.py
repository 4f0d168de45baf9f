from typing import List, Optional

from lark import exceptions


class CompileError(Exception):
    """Base exception for dfscript compilation errors."""
    def __init__(self, message: str, source: str = None):
        super().__init__(message)
        self.source = source


class DFSyntaxError(CompileError):
    """Raised when the source text does not match the grammar.

    ``line`` and ``column`` are 1-based. ``rule`` names the construct that
    was being parsed when it could be identified, otherwise it is None.
    """
    def __init__(
        self,
        message: str,
        line: int,
        column: int,
        token: Optional[str] = None,
        expected: Optional[List[str]] = None,
        rule: Optional[str] = None,
        source: str = None,
    ):
        super().__init__(message, source=source)
        self.line = line
        self.column = column
        self.token = token
        self.expected = sorted(expected or [])
        self.rule = rule

    @classmethod
    def from_lark(cls, err: exceptions.UnexpectedInput, source: str, rule: Optional[str] = None) -> "DFSyntaxError":
        """Build from any lark UnexpectedInput (token, characters or EOF)."""
        token = None
        expected = []

        if isinstance(err, exceptions.UnexpectedToken):
            token = "<end of input>" if err.token.type == "$END" else str(err.token.value)
            expected = list(err.expected or [])
        elif isinstance(err, exceptions.UnexpectedCharacters):
            token = err.char
            expected = list(err.allowed or [])
        elif isinstance(err, exceptions.UnexpectedEOF):
            token = "<end of input>"
            expected = list(err.expected or [])

        line = getattr(err, "line", -1)
        column = getattr(err, "column", -1)
        if not isinstance(line, int) or line < 0:
            # lark has no position for end of input; point just past the last character
            line = source.count("\n") + 1
            column = len(source) - source.rfind("\n")

        expected_str = ", ".join(sorted(expected)) or "nothing"
        message = f"Syntax error at line {line}, column {column}: unexpected {token!r} (expected: {expected_str})"
        if rule:
            message += f" [{rule}]"

        try:
            context = err.get_context(source)
        except (AttributeError, IndexError, TypeError):
            context = ""
        if context.strip():
            message += "\n" + context

        return cls(
            message,
            line=line,
            column=column,
            token=token,
            expected=expected,
            rule=rule,
            source=source,
        )


class SlotOverflowError(CompileError):
    """Raised when an instruction needs more argument slots than a chest holds."""
    pass
