# src/yamltree/cli/formatter.py
import difflib
import json
from typing import Any, Dict, List

from rich.console import Console
from rich.json import JSON
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

# Initialize the Rich console for high-quality terminal output
console = Console()


class TreeFormatter:
    """
    TreeFormatter: The visual side of the CLI.
    Responsible for rendering diffs, parse errors, dumps and execution reports.
    """

    def __init__(self, output: Console = None):
        self.console = output or console

    def display_diff(self, original_text: str, normalized_text: str, file_name: str):
        """
        Renders a colorized unified diff between a file and its normalized form.
        """
        if normalized_text is None:
            return

        diff_list = list(difflib.unified_diff(
            original_text.splitlines(),
            normalized_text.splitlines(),
            fromfile=f"Original: {file_name}",
            tofile="Normalized",
            lineterm=""
        ))

        if not diff_list:
            self.console.print(f"[dim]ℹ No changes needed for {file_name}.[/dim]")
            return

        syntax = Syntax("\n".join(diff_list), "diff", theme="monokai", line_numbers=True)
        self.console.print(Panel(syntax, title=f"Proposed Layout: {file_name}", border_style="green"))

    def print_error(self, report: Dict[str, Any]):
        """One line per failed file, pointing at the offending line when known."""
        where = f":{report['line']}" if report.get("line") else ""
        self.console.print(
            f"[bold red]{report.get('status')}[/bold red] {escape(str(report.get('file_path')))}{where} "
            f"[white]{escape(str(report.get('error')))}[/white]",
            highlight=False,
        )

    def print_dump(self, data: Any, fmt: str = "json"):
        if fmt == "yaml":
            self.console.print(Syntax(data, "yaml", theme="monokai"))
            return
        self.console.print(JSON(json.dumps(data, default=_json_default, ensure_ascii=False)))

    def print_final_table(self, reports: List[Dict[str, Any]]):
        """
        Builds the summary table shown at the very end of a check.
        """
        table = Table(title="yamltree Report", show_header=True, header_style="bold magenta")
        table.add_column("File Path", style="dim")
        table.add_column("Docs", justify="right")
        table.add_column("Status")
        table.add_column("Result", justify="center")

        for r in reports:
            success = r.get("success", False)
            color = "green" if success else "red"
            table.add_row(
                str(r.get("file_path")),
                str(r.get("documents", 0)),
                f"[{color}]{r.get('status')}[/{color}]",
                "✅" if success else "❌",
            )

        self.console.print(table)

    def print_summary(self, summary: Dict[str, Any]):
        self.console.print(Panel(
            f"[bold white]Summary Report[/bold white]\n"
            f"════════════════════════════════════════\n"
            f"Total Files:     {summary['total_files']}\n"
            f"Parsed:          [green]{summary['successful']}[/green]\n"
            f"Parse Errors:    [red]{summary['parse_errors']}[/red]\n"
            f"Documents:       {summary['documents']}\n"
            f"Written:         {summary['written_to_disk']}\n"
            f"Backups Created: {summary['backups_created']}",
            border_style="dim"
        ))


def _json_default(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return str(value)
