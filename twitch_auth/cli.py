"""Command-line interface for twitch-auth."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from pathlib import Path

from . import log
from .auth.launcher import BrowserRedirectLauncher
from .auth.manager import AuthManager
from .config import TwitchAuthSettings, _find_config_files
from .exceptions import TwitchAuthException
from .types import SignInOutcome


def main(argv: list[str] | None = None) -> int:
    """Parse ``argv`` and dispatch to a subcommand.

    Returns
    -------
    int
        Exit code.
    """
    parser = argparse.ArgumentParser(
        prog="twitch-auth",
        description="Sign in to Twitch with the OAuth2 implicit grant",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="Inspect the effective settings",
    )
    config_group = config_parser.add_mutually_exclusive_group()
    config_group.add_argument(
        "--show",
        action="store_true",
        help="Print the settings as a table (default)",
    )
    config_group.add_argument(
        "--env",
        action="store_true",
        help="Print the settings as shell export lines",
    )
    config_group.add_argument(
        "--sources",
        action="store_true",
        help="List the TOML files that were loaded",
    )
    config_parser.add_argument(
        "--output",
        "-o",
        type=str,
        help="Write to this file instead of stdout",
    )

    # login command
    login_parser = subparsers.add_parser(
        "login",
        help="Sign in through the browser and print the user profile",
    )
    login_parser.add_argument(
        "--sign-out",
        action="store_true",
        help="Revoke the token and sign out after printing the profile",
    )
    login_parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Print the sign-in URL instead of opening a browser",
    )
    login_parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)

    if args.command == "config":
        return handle_config(args)
    if args.command == "login":
        return handle_login(args)
    parser.print_help()
    return 0


def handle_config(args: argparse.Namespace) -> int:
    """Print the settings table, shell exports, or config sources.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command line arguments.

    Returns
    -------
    int
        Exit code.
    """
    if args.sources:
        return show_config_sources()

    settings = TwitchAuthSettings()
    output = settings.to_env() if args.env else settings.show()

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"Configuration written to {args.output}")
    else:
        print(output)

    return 0


def show_config_sources() -> int:
    """Print the configuration files that are currently loaded."""
    files = _find_config_files()
    if not files:
        print("No configuration files found; using defaults and environment.")
        return 0
    for path in files:
        print(path)
    print("\nLater files override earlier ones; environment variables override all.")
    return 0


def handle_login(args: argparse.Namespace) -> int:
    """Handle the login command.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command line arguments.

    Returns
    -------
    int
        Exit code (0 when signed in, 1 otherwise).
    """
    settings = TwitchAuthSettings()
    log.configure_from_settings(settings.log)
    if args.debug:
        log.enable_debug()

    def _print_url(url: str) -> bool:
        print(f"Open this URL to sign in:\n{url}", file=sys.stderr)
        return True

    launcher = BrowserRedirectLauncher(
        host=settings.oauth.redirect_host,
        port=settings.oauth.redirect_port,
        path=settings.oauth.redirect_path,
        open_browser=_print_url if args.no_browser else None,
    )
    manager = AuthManager(launcher=launcher, settings=lambda: settings)
    return asyncio.run(_login(manager, sign_out=args.sign_out))


async def _login(manager: AuthManager, sign_out: bool) -> int:
    try:
        result = await manager.sign_in()
    except TwitchAuthException as exc:
        print(f"Sign-in failed: {exc.message}", file=sys.stderr)
        await manager.close()
        return 1

    try:
        if result.outcome is not SignInOutcome.AUTHENTICATED or result.user is None:
            print(f"Sign-in {result.outcome.value}", file=sys.stderr)
            return 1

        print(json.dumps(result.user.model_dump(), indent=2))
        if sign_out:
            await manager.sign_out()
            print("Signed out", file=sys.stderr)
        return 0
    finally:
        await manager.close()


if __name__ == "__main__":
    sys.exit(main())
