"""Demo: Twitch Sign-In with twitch-auth.

Demonstrates the documented auth patterns:

- ``AuthManager`` as the owner of the session
- ``SessionPublisher.subscribe`` for observing sign-in progress
- ``sign_in()`` / ``sign_out()`` as the core lifecycle API

Setup
-----
1. Register an application at https://dev.twitch.tv/console/apps
2. Set its OAuth redirect URL to ``http://localhost:3000/callback``.
3. Export the client ID::

       # PowerShell
       $env:TWITCH_AUTH_OAUTH__CLIENT_ID = "your-client-id"

       # Bash
       export TWITCH_AUTH_OAUTH__CLIENT_ID="your-client-id"

4. Run::

       python examples/twitch_login_demo.py
"""

from __future__ import annotations

import asyncio
import sys

from twitch_auth import (
    AuthManager,
    AuthView,
    ConfigurationError,
    SignInOutcome,
    TwitchAuthException,
    get_settings,
)


def on_change(view: AuthView) -> None:
    """Print every published auth state."""
    if view.is_logging_in:
        print("... waiting for Twitch (finish the sign-in in your browser)")
    elif view.is_logging_out:
        print("... signing out")
    elif view.user is not None:
        print(f"Signed in as {view.user.display_name}")
    else:
        print("Signed out")


async def main() -> int:
    """Sign in, show the profile, sign out."""
    try:
        get_settings().require_client_id()
    except ConfigurationError as exc:
        print(f"ERROR: {exc.message}")
        print("  Register an app at https://dev.twitch.tv/console/apps and export its client ID.")
        return 1

    manager = AuthManager()
    manager.publisher.subscribe(on_change)

    try:
        result = await manager.sign_in()
    except TwitchAuthException as exc:
        print(f"Sign-in failed: {exc}")
        await manager.close()
        return 1

    try:
        if result.outcome is not SignInOutcome.AUTHENTICATED:
            print(f"Sign-in {result.outcome.value}")
            return 1

        user = result.user
        print(f"  id:    {user.id}")
        print(f"  email: {user.email or '(not shared)'}")
        print(f"  image: {user.profile_image_url}")

        await manager.sign_out()
        return 0
    finally:
        await manager.close()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
