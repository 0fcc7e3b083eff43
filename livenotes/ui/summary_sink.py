"""Terminal presentation sink that renders the latest summary."""

import logging
from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel

logger = logging.getLogger(__name__)


class ConsoleSummarySink:
    """Renders each summary as Markdown in a rich panel."""

    def __init__(self, title: str, console: Optional[Console] = None):
        """Initialize summary sink.

        Args:
            title: Panel title, usually the capture source
            console: Console to print to, stdout if omitted
        """
        self.title = title
        self.console = console or Console()
        self.content = ""
        self.updates = 0

    def set_content(self, summary_text: str) -> None:
        """Replace the displayed summary."""
        self.content = summary_text
        self.updates += 1

        subtitle = f"update {self.updates} at {datetime.now().strftime('%H:%M:%S')}"
        self.console.print(Panel(
            Markdown(summary_text or "_Untitled_"),
            title=f"{self.title} summary",
            subtitle=subtitle,
            border_style="cyan"
        ))
        logger.debug(f"Rendered {self.title} summary update {self.updates}")
