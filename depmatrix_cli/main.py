#!/usr/bin/env python3
"""
DepMatrix CLI - Main Entry Point

Usage:
    depmatrix serve                          # Run the API server
    depmatrix show matrix.json               # Render a matrix file as a table
    depmatrix totals matrix.json             # Print row/column/category totals as JSON
    depmatrix seed --token T --keyword K     # Create the demo matrix remotely
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from rich.console import Console

from depmatrix_cli import __version__
from depmatrix_cli.renderer import load_matrix_file, render_matrix, totals_payload


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI"""
    parser = argparse.ArgumentParser(
        prog="depmatrix",
        description="DepMatrix - triangular dependency matrix management",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  depmatrix serve --port 8000                      Run the API
  depmatrix show snapshot.json                     Show a saved matrix
  depmatrix totals snapshot.json                   Print totals as JSON
  depmatrix seed --token TOKEN --keyword secret    Create the demo matrix
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", type=str, default=None, help="Bind host (default: SERVER_HOST)")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port (default: SERVER_PORT)")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    # Show command
    show_parser = subparsers.add_parser("show", help="Render a matrix record, structure or snapshot")
    show_parser.add_argument("file", type=str, help="JSON file")
    show_parser.add_argument("--title", type=str, default=None, help="Table title")

    # Totals command
    totals_parser = subparsers.add_parser("totals", help="Print totals for a matrix file as JSON")
    totals_parser.add_argument("file", type=str, help="JSON file")

    # Seed command
    seed_parser = subparsers.add_parser("seed", help="Create the demo matrix in the Persistence Service")
    seed_parser.add_argument("--token", "-t", required=True, help="Persistence Service bearer token")
    seed_parser.add_argument("--keyword", "-k", required=True, help="Access keyword for the new matrix")
    seed_parser.add_argument("--title", type=str, default=None, help="Matrix title")
    seed_parser.add_argument(
        "--server-url",
        type=str,
        default=None,
        help="Persistence Service URL (default: PERSISTENCE_API_URL)"
    )

    return parser


def run_serve(args: argparse.Namespace) -> int:
    import uvicorn
    from depmatrix.core.config import settings

    uvicorn.run(
        "depmatrix.main:app",
        host=args.host or settings.SERVER_HOST,
        port=args.port or settings.SERVER_PORT,
        reload=args.reload,
    )
    return 0


def run_show(args: argparse.Namespace, console: Console) -> int:
    matrix = load_matrix_file(args.file)
    render_matrix(matrix, console=console, title=args.title)
    return 0


def run_totals(args: argparse.Namespace) -> int:
    from depmatrix.services.matrix_model import compute_totals

    matrix = load_matrix_file(args.file)
    print(json.dumps(totals_payload(compute_totals(matrix)), indent=2))
    return 0


async def _seed(args: argparse.Namespace):
    from depmatrix.db.seed_data import DEMO_TITLE, seed_demo_matrix
    from depmatrix.services.matrix_store import RemoteMatrixStore
    from depmatrix.services.persistence_client import MatrixServiceClient

    async with MatrixServiceClient(base_url=args.server_url, token=args.token) as client:
        return await seed_demo_matrix(
            RemoteMatrixStore(client),
            keyword=args.keyword,
            title=args.title or DEMO_TITLE,
            created_by="cli",
        )


def run_seed(args: argparse.Namespace, console: Console) -> int:
    record = asyncio.run(_seed(args))
    console.print(f"[green]✓ Created matrix[/green] [bold]{record.title}[/bold] ({record.id})")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    from depmatrix.core.exceptions import DependencyMatrixError

    parser = create_parser()
    args = parser.parse_args(argv)
    console = Console()

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == "serve":
            return run_serve(args)
        if args.command == "show":
            return run_show(args, console)
        if args.command == "totals":
            return run_totals(args)
        if args.command == "seed":
            return run_seed(args, console)
    except FileNotFoundError as e:
        console.print(f"[red]✗ File not found:[/red] {e.filename}")
        return 1
    except DependencyMatrixError as e:
        console.print(f"[red]✗ {e.message}[/red]")
        if args.verbose and e.details:
            console.print(e.details)
        return 1
    except KeyboardInterrupt:
        print("\n\nGoodbye!")
        return 0

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
