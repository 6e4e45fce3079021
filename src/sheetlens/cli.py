"""Command-line interface for SheetLens."""

import argparse
import logging
import sys
from pathlib import Path

import uvicorn

from .config import settings


def main():
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="SheetLens - find/replace and selection aggregates for spreadsheet grids"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Server command
    server_parser = subparsers.add_parser("serve", help="Start the web server")
    server_parser.add_argument(
        "--host", default=settings.host, help=f"Host to bind to (default: {settings.host})"
    )
    server_parser.add_argument(
        "--port", type=int, default=settings.port, help=f"Port to bind to (default: {settings.port})"
    )
    server_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    # Aggregate command
    aggregate_parser = subparsers.add_parser(
        "aggregate", help="Print count/sum/average for a range of a CSV file"
    )
    aggregate_parser.add_argument("file", type=Path, help="CSV file to load")
    aggregate_parser.add_argument("range", help="Range in A1 notation, e.g. B2:B20")

    # Interactive command
    interactive_parser = subparsers.add_parser(
        "interactive", help="Start an interactive find/replace session"
    )
    interactive_parser.add_argument("--csv", type=Path, help="CSV file to load first")

    args = parser.parse_args()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        run_server(args.host, args.port, args.reload)
    elif args.command == "aggregate":
        sys.exit(run_aggregate(args.file, args.range))
    elif args.command == "interactive":
        run_interactive(args.csv)
    else:
        parser.print_help()
        sys.exit(1)


def run_server(host: str, port: int, reload: bool):
    """Run the web server."""
    uvicorn.run(
        "sheetlens.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


def run_aggregate(path: Path, range_notation: str) -> int:
    """Print the status bar summary for a range. Returns the exit code."""
    from .aggregate import compute_aggregate
    from .grid import GridStore, SelectionRange

    try:
        selection = SelectionRange.from_a1(range_notation)
        text = path.read_text(encoding="utf-8")
    except (ValueError, OSError) as e:
        print(f"Error: {e}")
        return 1

    grid = GridStore()
    grid.load_csv(text)
    summary = compute_aggregate(selection, grid)
    if summary is None:
        print("Select multiple cells to see aggregates")
    else:
        print(summary.to_status_text())
    return 0


HELP_TEXT = """Commands:
  find <term>       set the search term
  replace <text>    set the replacement text
  next / prev       move between matches
  replace-one       replace in the active match
  replace-all       replace in every match
  select A1[:B2]    select a range and show aggregates
  set A1 <value>    edit a cell
  toggle            open/close the find panel
  show              print the find state
  quit              exit"""


def run_interactive(csv_path: Path = None):
    """Run an interactive find/replace session."""
    from .find import FindCommand
    from .grid import CellWriteRejected, Coordinate, SelectionRange
    from .session import EditorSession

    session = EditorSession()
    if csv_path:
        count = session.load_csv(csv_path.read_text(encoding="utf-8"))
        print(f"Loaded {count} cells from {csv_path}")
    session.handle_command(FindCommand.toggle())

    print("SheetLens Interactive Mode")
    print("=" * 40)
    print(HELP_TEXT)
    print()

    while True:
        try:
            line = input("> ").strip()
        except EOFError:
            break

        if not line:
            continue

        verb, _, rest = line.partition(" ")
        verb = verb.lower()

        if verb in ("quit", "exit"):
            print("Goodbye!")
            break

        try:
            if verb == "find":
                result = session.handle_command(FindCommand.search(rest))
            elif verb == "replace":
                result = session.handle_command(FindCommand.replace_with(rest))
            elif verb == "next":
                result = session.handle_command(FindCommand.next())
            elif verb == "prev":
                result = session.handle_command(FindCommand.previous())
            elif verb == "replace-one":
                result = session.handle_command(FindCommand.replace_current())
            elif verb == "replace-all":
                result = session.handle_command(FindCommand.replace_all())
            elif verb == "toggle":
                result = session.handle_command(FindCommand.toggle())
            elif verb == "select":
                selection = SelectionRange.from_a1(rest)
                session.select(
                    Coordinate(col=selection.start_col, row=selection.start_row),
                    Coordinate(col=selection.end_col, row=selection.end_row),
                )
                summary = session.aggregate()
                print(summary.to_status_text() if summary else "Select multiple cells to see aggregates")
                continue
            elif verb == "set":
                ref, _, value = rest.partition(" ")
                session.edit_cell(Coordinate.from_a1(ref), value)
                print(f"{ref.upper()} = {value}")
                continue
            elif verb == "show":
                result = None
            else:
                print(HELP_TEXT)
                continue
        except (ValueError, CellWriteRejected) as e:
            print(f"Error: {e}")
            continue

        if result is not None and result.outcome is not None:
            print(f"Replaced {result.outcome.replaced_count} cells")
            for skip in result.outcome.skipped:
                print(f"  skipped {skip.coordinate.a1}: {skip.reason}")

        state = session.find.state
        active = state.active_match.a1 if state.active_match else "-"
        print(f"[{state.status.value}] '{state.search_term}' {state.match_label} (active: {active})")


if __name__ == "__main__":
    main()
