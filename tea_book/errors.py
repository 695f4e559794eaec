from __future__ import annotations


class ConfigError(RuntimeError):
    """Raised when configuration is missing or invalid."""


class TransportFailure(RuntimeError):
    """Raised when a page fetch from the Notion API fails."""

    def __init__(self, message: str, *, operation: str) -> None:
        super().__init__(message)
        self.operation = operation


class SchemaViolation(RuntimeError):
    """Raised when a Notion property or block does not have the expected type."""

    def __init__(
        self,
        *,
        field: str,
        expected: str,
        actual: str,
        row_id: str | None = None,
        detail: str | None = None,
    ) -> None:
        message = f"Expected {field} to be {expected} but got {actual}"
        if row_id:
            message += f" (row {row_id})"
        if detail:
            message += f"\n{detail}"
        super().__init__(message)
        self.field = field
        self.expected = expected
        self.actual = actual
        self.row_id = row_id


class UnsupportedBlockType(RuntimeError):
    """Raised when a tea page contains a block type that cannot be rendered."""

    def __init__(self, *, block_type: str, tea_name: str) -> None:
        super().__init__(f"Unexpected block type: {block_type} in {tea_name}")
        self.block_type = block_type
        self.tea_name = tea_name


class TemplateMarkerMissing(RuntimeError):
    """Raised when the cover template has no <slot /> marker element."""


class ExportError(RuntimeError):
    """Raised when the manuscript or cover cannot be written."""
