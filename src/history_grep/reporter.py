"""Console rendering of match records.

The ``<commit> <path>(<line>):`` prefix is styled through rich. The matched
line itself is written straight to the console's file, so tabs, carriage
returns and markup-like sequences (``[red]``, ``[/bold]``) are printed exactly
as they appear in the blob.
"""

from typing import Iterable, Optional

from rich.console import Console
from rich.text import Text

from .models import MatchRecord

COMMIT_STYLE = "bright_blue"
PATH_STYLE = "green"
LINE_MARKER_STYLE = "bright_yellow"


class MatchReporter:
    """Renders one line per match, optionally grouped under commit headers."""

    def __init__(
        self,
        console: Optional[Console] = None,
        color: bool = True,
        output_grouping: bool = True,
    ):
        self.console = console or Console(highlight=False)
        self.color = color
        self.output_grouping = output_grouping
        self._current_commit: Optional[str] = None

    def _styled(self, text: str, style: str) -> Text:
        return Text(text, style=style if self.color else "")

    def format_prefix(self, record: MatchRecord) -> Text:
        """Build the ``<path>(<line>): `` prefix printed before the line text."""
        prefix = Text()
        if self.output_grouping:
            prefix.append("  ")
        else:
            prefix.append_text(self._styled(record.commit, COMMIT_STYLE))
            prefix.append(" ")
        prefix.append_text(self._styled(record.path, PATH_STYLE))
        prefix.append_text(self._styled(f"({record.line_number}):", LINE_MARKER_STYLE))
        prefix.append(" ")
        return prefix

    def format_header(self, commit: str) -> Text:
        header = Text("commit ")
        header.append_text(self._styled(commit, COMMIT_STYLE))
        header.append(":")
        return header

    def report(self, record: MatchRecord) -> None:
        """Print one record, preceded by its commit header when it is the first."""
        if self.output_grouping and record.commit != self._current_commit:
            self.console.print()
            self.console.print(self.format_header(record.commit), soft_wrap=True)
        self._current_commit = record.commit
        self.console.print(self.format_prefix(record), end="", soft_wrap=True)
        self.console.file.write(record.line_text + "\n")
        self.console.file.flush()

    def report_all(self, records: Iterable[MatchRecord]) -> int:
        """Render every record of a stream and return how many were printed."""
        count = 0
        for record in records:
            self.report(record)
            count += 1
        return count
