"""Rich console logging for the one-shot commands."""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from rich.console import Console, ConsoleRenderable
from rich.logging import RichHandler
from rich.text import Text


class CorrelationRichHandler(RichHandler):
    """RichHandler that shows the record's correlation ID before the message."""

    LEVEL_COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "dim",
        "INFO": "cyan",
        "WARNING": "yellow",
        "ERROR": "red",
        "CRITICAL": "bold red",
    }

    def get_level_text(self, record: logging.LogRecord) -> Text:
        """Color the level name."""
        level_name = record.levelname
        return Text(
            level_name.ljust(8), style=self.LEVEL_COLORS.get(level_name, "")
        )

    def render_message(
        self, record: logging.LogRecord, message: str
    ) -> ConsoleRenderable:
        """Prefix the message with a short correlation ID, if one is set."""
        rendered = super().render_message(record, message)
        corr_id = getattr(record, "correlation_id", None)
        if not corr_id or corr_id == "no-correlation-id" or not isinstance(rendered, Text):
            return rendered
        return Text.assemble((f"[{corr_id[:8]}] ", "dim"), rendered)


def create_rich_handler(
    console: Console | None = None,
    level: int | str = logging.INFO,
    show_path: bool = False,
    rich_tracebacks: bool = True,
    **kwargs: Any,
) -> logging.Handler:
    """Create a :class:`CorrelationRichHandler` writing to stderr.

    Args:
        console: Rich console to write to (default: a stderr console)
        level: Log level
        show_path: Whether to show file paths in log output
        rich_tracebacks: Whether to render tracebacks with Rich
        **kwargs: Passed through to :class:`rich.logging.RichHandler`

    """
    if console is None:
        console = Console(stderr=True)
    return CorrelationRichHandler(
        console=console,
        level=level,
        show_path=show_path,
        rich_tracebacks=rich_tracebacks,
        **kwargs,
    )
