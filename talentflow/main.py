"""
talentflow main entry point.

Small CLI over the core: inspect and change the display preference, and
run a session guard against the configured identity provider.
"""

import argparse
import asyncio
import os
import sys
from typing import Optional

from rich.console import Console


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="talentflow",
        description="talentflow - session guard and display preference tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  talentflow theme                Show the current theme
  talentflow theme set dark       Switch to dark and remember it
  talentflow theme toggle         Flip between light and dark
  talentflow session /dashboard   Check whether /dashboard would render
        """
    )

    parser.add_argument(
        "--version", "-v",
        action="store_true",
        help="Show version information"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command")

    theme = subparsers.add_parser("theme", help="Show or change the display preference")
    theme.add_argument("action", nargs="?", default="show", choices=["show", "set", "toggle"])
    theme.add_argument("value", nargs="?", choices=["light", "dark"])

    session = subparsers.add_parser("session", help="Run the session guard for a route")
    session.add_argument("path", nargs="?", default="/dashboard", help="Route to guard")

    return parser


def _make_store(console: Console):
    from .preferences import ConsoleThemeTarget, JsonFileStorage, PreferenceStore

    store = PreferenceStore(JsonFileStorage(), target=ConsoleThemeTarget(console))
    store.initialize()
    return store


def run_theme(args, store, console: Console) -> int:
    """Handle ``talentflow theme``."""
    if args.action == "set":
        if args.value is None:
            console.print("[warning]Usage: talentflow theme set light|dark[/warning]")
            return 1
        store.set(args.value)
    elif args.value is not None:
        console.print(f"[warning]'{args.action}' takes no value; use: talentflow theme set {args.value}[/warning]")
        return 1
    elif args.action == "toggle":
        store.toggle()

    console.print(f"[text]Theme:[/text] [accent]{store.value.value}[/accent]")
    return 0


async def _guard_route(path: str, console: Console) -> int:
    from .auth import AuthContext, RecordingNavigator, create_supabase_oracle

    oracle = await create_supabase_oracle()
    navigator = RecordingNavigator()
    with AuthContext(oracle, navigator) as context:
        async with context.guard(path).mounted() as guard:
            context.adopt(guard)
            console.print(f"[text]Route:[/text] [accent]{path}[/accent]")
            console.print(f"[text]Session:[/text] [accent]{guard.state.value}[/accent]")
            console.print(f"[text]Gate:[/text] [accent]{guard.gate().value}[/accent]")
            if context.user is not None:
                label = context.user.name or context.user.email or context.user.id
                console.print(f"[text]User:[/text] [success]{label}[/success]")
            if not guard.live_updates:
                console.print("[muted]Live sign-out detection unavailable[/muted]")

    if navigator.current is not None:
        console.print(f"[text]Redirect:[/text] [warning]{navigator.current}[/warning]")
    return 0


def run_session(args, console: Console) -> int:
    """Handle ``talentflow session``."""
    from .config import get_config

    if not get_config().supabase.is_configured:
        console.print(
            "[warning]No identity provider configured.[/warning] "
            "[muted]Set SUPABASE_URL and SUPABASE_ANON_KEY.[/muted]"
        )
        return 1

    return asyncio.run(_guard_route(args.path, console))


def main(argv: Optional[list] = None) -> int:
    """Main entry point for talentflow."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from . import __version__
        print(f"talentflow version {__version__}")
        return 0

    if args.debug:
        os.environ["TALENTFLOW_DEBUG"] = "1"

    from .config import get_config
    from .errors import ConfigurationError
    from .logging_setup import setup_logging

    try:
        config = get_config()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    setup_logging(config.logging.level)

    console = Console()
    store = _make_store(console)

    if args.command == "theme":
        return run_theme(args, store, console)
    if args.command == "session":
        return run_session(args, console)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
