"""
Error formatting for petscore tools.

Turns lexicon, catalog-input and file-system exceptions into readable
messages with recovery guidance, plus a one-line form for the log file.
"""

from typing import Dict, Optional, Any
from dataclasses import dataclass, field
from enum import Enum
import traceback


# ============================================================
# Error Severity Levels
# ============================================================

class ErrorSeverity(Enum):
    """Error severity classification."""

    INFO = "info"           # Informational (no action needed)
    WARNING = "warning"     # Caution (output produced, check it)
    ERROR = "error"         # Error (run aborted)
    CRITICAL = "critical"   # Critical (configuration unusable)


# ============================================================
# Error Context
# ============================================================

@dataclass
class ErrorContext:
    """
    Structured error context.

    Attributes:
        message: Readable error description
        severity: Error severity level
        technical_details: Technical error info (for logs/debugging)
        context: Additional context (file, record, operation)
        recovery_steps: Actions the user can take
        error_code: Optional stable code for documentation
    """
    message: str
    severity: ErrorSeverity
    technical_details: str
    context: Dict[str, Any] = field(default_factory=dict)
    recovery_steps: list = field(default_factory=list)
    error_code: Optional[str] = None

    def format_for_display(self, include_technical: bool = False) -> str:
        """
        Format error for terminal output.

        Args:
            include_technical: Include technical details in message

        Returns:
            Multi-line message
        """
        lines = [self.message]

        if self.context:
            lines.append("")
            lines.append("Details:")
            for key, value in self.context.items():
                if value is not None:
                    lines.append(f"  - {key}: {value}")

        if self.recovery_steps:
            lines.append("")
            lines.append("Suggested actions:")
            for i, step in enumerate(self.recovery_steps, 1):
                lines.append(f"  {i}. {step}")

        if include_technical and self.technical_details:
            lines.append("")
            lines.append("Technical details:")
            lines.append(f"  {self.technical_details}")

        if self.error_code:
            lines.append("")
            lines.append(f"Error code: {self.error_code}")

        return "\n".join(lines)

    def format_for_log(self) -> str:
        """Format error for structured logging."""
        context_str = ", ".join(f"{k}={v}" for k, v in self.context.items() if v is not None)
        return f"[{self.severity.value.upper()}] {self.message} | Context: {context_str} | Technical: {self.technical_details}"


# ============================================================
# Error Formatters
# ============================================================

class ErrorFormatter:
    """Transforms exceptions into ErrorContext objects."""

    @staticmethod
    def format_lexicon_error(exc: Exception, source: Optional[str] = None) -> ErrorContext:
        """
        Format lexicon loading errors (petscore.lexicon).

        Args:
            exc: The exception raised by load_lexicon
            source: Lexicon path or label

        Returns:
            ErrorContext
        """
        from ..lexicon import LexiconFormatError, LexiconNotFoundError

        context = {"Lexicon": source}

        if isinstance(exc, LexiconNotFoundError):
            return ErrorContext(
                message=f"Ingredient lexicon not found: {exc}",
                severity=ErrorSeverity.CRITICAL,
                technical_details=f"LexiconNotFoundError: {exc}",
                context=context,
                recovery_steps=[
                    "Check the --lexicon path",
                    "Omit --lexicon to use the bundled default lexicon",
                ],
                error_code="LEX_001",
            )

        elif isinstance(exc, LexiconFormatError):
            return ErrorContext(
                message=f"Ingredient lexicon is invalid: {exc}",
                severity=ErrorSeverity.CRITICAL,
                technical_details=f"LexiconFormatError: {exc}",
                context=context,
                recovery_steps=[
                    "Validate the file as JSON",
                    "Each category needs a numeric 'pointValue' and an 'ingredients' list",
                    "Remove phrases listed in more than one category",
                ],
                error_code="LEX_002",
            )

        else:
            return ErrorContext(
                message="Could not load the ingredient lexicon",
                severity=ErrorSeverity.CRITICAL,
                technical_details=f"{type(exc).__name__}: {exc}",
                context=context,
                recovery_steps=["Check the lexicon file and try again"],
                error_code="LEX_999",
            )

    @staticmethod
    def format_input_error(
        exc: Exception,
        source: str,
        record: Optional[int] = None,
    ) -> ErrorContext:
        """
        Format catalog input errors (unreadable rows, wrong top-level shape).

        Args:
            exc: Exception raised while reading the catalog
            source: Input file
            record: 1-based record number, when known

        Returns:
            ErrorContext
        """
        context: Dict[str, Any] = {"Input": source}
        if record is not None:
            context["Record"] = record

        recovery_steps = ["Check the input file format (JSON list of objects or CSV with a header row)"]
        exc_str = str(exc).lower()
        if "json" in exc_str:
            recovery_steps.append("Validate the file with a JSON linter")
        elif "csv" in exc_str or "header" in exc_str:
            recovery_steps.append("Make sure the first row names the columns")

        return ErrorContext(
            message=f"Catalog input could not be read: {exc}",
            severity=ErrorSeverity.ERROR,
            technical_details=f"{type(exc).__name__}: {exc}",
            context=context,
            recovery_steps=recovery_steps,
            error_code="INPUT_001",
        )

    @staticmethod
    def format_io_error(
        exc: Exception,
        file_path: str,
        operation: str,
    ) -> ErrorContext:
        """
        Format I/O errors (file not found, permission denied, etc.).

        Args:
            exc: I/O exception
            file_path: File path that caused the error
            operation: Operation attempted (read, write)

        Returns:
            ErrorContext with I/O error guidance
        """
        context = {"File": file_path, "Operation": operation}

        if isinstance(exc, FileNotFoundError):
            return ErrorContext(
                message=f"File not found: {file_path}",
                severity=ErrorSeverity.ERROR,
                technical_details=str(exc),
                context=context,
                recovery_steps=[
                    "Check that the path is correct",
                    "Check that the output directory exists",
                ],
                error_code="IO_001",
            )

        elif isinstance(exc, PermissionError):
            return ErrorContext(
                message=f"Permission denied: {file_path}",
                severity=ErrorSeverity.ERROR,
                technical_details=str(exc),
                context=context,
                recovery_steps=[
                    "Check read/write permissions on the file",
                    "Close other programs holding the file open",
                ],
                error_code="IO_002",
            )

        elif isinstance(exc, OSError):
            return ErrorContext(
                message=f"I/O error during {operation}: {file_path}",
                severity=ErrorSeverity.ERROR,
                technical_details=str(exc),
                context=context,
                recovery_steps=[
                    "Check available disk space",
                    "Retry the operation",
                ],
                error_code="IO_003",
            )

        else:
            return ErrorContext(
                message=f"Unexpected error with file: {file_path}",
                severity=ErrorSeverity.ERROR,
                technical_details=str(exc),
                context=context,
                recovery_steps=["Retry the operation"],
                error_code="IO_999",
            )

    @staticmethod
    def format_generic_error(
        exc: Exception,
        operation: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> ErrorContext:
        """
        Format generic/unknown errors with minimal guidance.

        Args:
            exc: Exception
            operation: Operation that failed
            context: Additional context

        Returns:
            ErrorContext with generic recovery steps
        """
        ctx = {"Operation": operation}
        if context:
            ctx.update(context)

        return ErrorContext(
            message=f"Unexpected error during {operation}",
            severity=ErrorSeverity.ERROR,
            technical_details=f"{type(exc).__name__}: {exc}\n{traceback.format_exc()}",
            context=ctx,
            recovery_steps=[
                "Retry the operation",
                "Re-run with --verbose and report the log file",
            ],
            error_code="GENERIC_999",
        )
