"""
Mini-Pascal Errors

Defines exception classes for compilation and execution errors.
Every error is fatal: it is raised where it is detected and unwinds
to the top of the compile or run phase.
"""

from typing import Optional


class PascalError(Exception):
    """Base exception for all Mini-Pascal errors."""

    def __init__(self, message: str, line: Optional[int] = None,
                 filename: Optional[str] = None):
        self.message = message
        self.line = line
        self.filename = filename
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with location information."""
        if self.filename and self.line is not None:
            return f"{self.filename}:{self.line}: {self.message}"
        if self.filename:
            return f"{self.filename}: {self.message}"
        if self.line is not None:
            return f"line {self.line}: {self.message}"
        return self.message

    def with_filename(self, filename: str) -> "PascalError":
        """Attach the source file name and refresh the message."""
        self.filename = filename
        self.args = (self._format_message(),)
        return self


class LexicalError(PascalError):
    """Raised when the lexer meets a character it does not recognize."""

    def __init__(self, char: str, line: int, filename: Optional[str] = None):
        self.char = char
        super().__init__(f"Invalid character {char!r}", line, filename)


class ParseError(PascalError):
    """Raised when a token does not match what the grammar expects."""
    pass


class SemanticError(PascalError):
    """Raised for undeclared identifiers, redeclarations and misused names."""
    pass


class ExecutionError(PascalError):
    """Raised by the virtual machine when a program cannot continue."""

    def __init__(self, message: str, pc: Optional[int] = None):
        self.pc = pc
        if pc is not None:
            message = f"{message} (pc={pc})"
        super().__init__(message)


class BytecodeFormatError(PascalError):
    """Raised when a persisted instruction file cannot be decoded."""
    pass
