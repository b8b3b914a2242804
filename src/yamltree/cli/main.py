#!/usr/bin/env python3
"""
YAMLTREE CLI
------------
Command-line front end: check files parse cleanly, dump their container
view, or normalize their layout through the writer.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Rich library components for high-fidelity terminal UI
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

from yamltree.cli.formatter import TreeFormatter
from yamltree.core.document import read_path
from yamltree.core.engine import ParseEngine
from yamltree.core.errors import YamlTreeError
from yamltree.parsing.exporter import YamlExporter

VERSION = "0.1.0"

# Global console for consistent styling across the application
console = Console()


class YamlTreeCLI:
    """
    CLI wrapper that translates user commands into Engine actions.
    Provides visual feedback, safety confirmations and diffs.
    """

    def __init__(self):
        self.parser = argparse.ArgumentParser(
            prog="yamltree",
            description="yamltree - indentation-aware YAML parsing engine",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        self.formatter = TreeFormatter(console)
        self._setup_args()

    def _setup_args(self):
        """Configures the command-line flags and subcommands."""
        self.parser.add_argument("--version", action="version", version=f"yamltree v{VERSION}")
        self.parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
        subparsers = self.parser.add_subparsers(dest="command", metavar="Command")

        check_parser = subparsers.add_parser("check", help="🔍 Parse files and report errors")
        check_parser.add_argument("path", help="Path to a YAML file or directory")
        check_parser.add_argument("--ext", default=".yaml", help="File extension filter (default: .yaml)")
        check_parser.add_argument("--cross-check", action="store_true",
                                  help="Compare results against ruamel.yaml")

        dump_parser = subparsers.add_parser("dump", help="📄 Print the parsed content of a file")
        dump_parser.add_argument("path", help="Path to a YAML file")
        dump_parser.add_argument("--format", choices=["json", "yaml"], default="json", dest="fmt",
                                 help="Output format (default: json)")

        fmt_parser = subparsers.add_parser("fmt", help="🧹 Normalize file layout")
        fmt_parser.add_argument("path", help="Path to a YAML file or directory")
        fmt_parser.add_argument("--dry-run", action="store_true", help="Preview results without writing")
        fmt_parser.add_argument("--diff", action="store_true", help="Display a unified diff per file")
        fmt_parser.add_argument("-y", "--yes", action="store_true", help="Auto-confirm writes")
        fmt_parser.add_argument("--ext", default=".yaml", help="File extension filter (default: .yaml)")

    def print_header(self, subtitle: str):
        console.print(Panel.fit(
            f"[bold cyan]yamltree v{VERSION}[/bold cyan]",
            title=f"[bold white]{subtitle}[/bold white]",
            border_style="cyan"
        ))

    def _confirm_action(self, target_count: int, args: argparse.Namespace) -> bool:
        """Safety Gate logic: ensures the user wants to proceed with writes."""
        if args.dry_run or args.yes:
            return True

        if target_count == 1:
            choice = console.input("\n[bold yellow]Rewrite this file? (y/N): [/bold yellow]").lower()
            return choice == "y"

        console.print(Panel(
            f"[bold red]⚠️  BATCH MODIFICATION[/bold red]\n\n"
            f"Target Path: [white]{args.path}[/white]\n"
            f"File Count:  [bold cyan]{target_count} files[/bold cyan]\n",
            expand=False, border_style="red"
        ))
        return console.input("[bold yellow]Type 'CONFIRM' to rewrite: [/bold yellow]") == "CONFIRM"

    def _targets(self, input_path: Path, ext: str) -> List[Path]:
        if input_path.is_file():
            return [input_path]
        return sorted(f for f in input_path.rglob(f"*{ext}") if f.is_file() and not f.is_symlink())

    def _run_engine(self, args: argparse.Namespace, normalize: bool) -> int:
        """Main processing loop orchestration."""
        input_path = Path(args.path).resolve()
        if not input_path.exists():
            console.print(f"[bold red]Error:[/bold red] Path '{args.path}' not found.")
            return 2

        workspace = input_path if input_path.is_dir() else input_path.parent
        engine = ParseEngine(str(workspace), extension=args.ext,
                             cross_check=getattr(args, "cross_check", False))

        target_files = self._targets(input_path, args.ext)
        if not target_files:
            console.print(f"\n[bold yellow]⚠️  No {args.ext} files found.[/bold yellow]")
            return 0

        dry_run = getattr(args, "dry_run", True) if normalize else True
        if normalize and not self._confirm_action(len(target_files), args):
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            return 1

        reports = []
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(bar_width=40),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        ) as progress:
            task_id = progress.add_task("Parsing files...", total=len(target_files))
            for file_path in target_files:
                rel_path = str(file_path.relative_to(workspace))
                show_diff = getattr(args, "diff", False)
                old_content = file_path.read_text(encoding="utf-8-sig", errors="replace") if show_diff else ""

                report = engine.parse_file(rel_path, dry_run=dry_run, normalize=normalize)
                reports.append(report)

                if show_diff and report.get("normalized_content"):
                    progress.stop()
                    self.formatter.display_diff(old_content, report["normalized_content"], rel_path)
                    progress.start()
                progress.advance(task_id)

        for report in reports:
            if not report.get("success"):
                self.formatter.print_error(report)
                if report.get("cross_check"):
                    console.print(f"  [dim]{escape(report['cross_check'])}[/dim]", highlight=False)

        self.formatter.print_final_table(reports)
        self.formatter.print_summary(engine.generate_summary(reports))
        return 0 if all(r.get("success") for r in reports) else 1

    def _dump(self, args: argparse.Namespace) -> int:
        try:
            document = read_path(args.path)
        except FileNotFoundError:
            console.print(f"[bold red]Error:[/bold red] Path '{args.path}' not found.")
            return 2
        except YamlTreeError as e:
            console.print(f"[bold red]{type(e).__name__}:[/bold red] {escape(str(e))}", highlight=False)
            return 1

        if args.fmt == "yaml":
            self.formatter.print_dump(YamlExporter(line_terminator="\n").export(document), "yaml")
        else:
            data = document.to_maps()
            self.formatter.print_dump(data if document.multiple else data[0])
        return 0

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Primary routing entry point; returns the process exit code."""
        argv = sys.argv[1:] if argv is None else argv
        if not argv:
            self.print_header("YAML Parsing Engine")
            self.parser.print_help()
            return 0

        args = self.parser.parse_args(argv)
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.WARNING,
            format="%(levelname)s %(name)s: %(message)s",
        )

        if args.command == "check":
            self.print_header("Parse Check")
            return self._run_engine(args, normalize=False)
        if args.command == "fmt":
            self.print_header("Layout Normalizer")
            return self._run_engine(args, normalize=True)
        if args.command == "dump":
            return self._dump(args)

        self.parser.print_help()
        return 0


def main():
    """Application entry point with interrupt handling."""
    try:
        sys.exit(YamlTreeCLI().run())
    except KeyboardInterrupt:
        console.print("\n[bold red]Terminated by user.[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
