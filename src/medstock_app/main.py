from __future__ import annotations

import argparse
import asyncio
import logging

from medstock_client import ConfigError, load_config

from medstock_app.app.bootstrap import MedStockApp
from medstock_app.app.state import Route


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


async def print_stocks(app: MedStockApp, pages: int) -> int:
    view = await app.open_dashboard()
    if view is not None:
        for _ in range(max(0, pages - 1)):
            if not await view.on_sentinel_visible():
                break
    # A rejected token sends the app back to login while the list loads.
    if view is None or app.state.route is not Route.DASHBOARD:
        print(app.state.error_message or "Login required.")
        return 1
    rendered = view.render()
    print(rendered["summary"])
    for card in rendered["cards"]:
        print(f"  #{card['id']:<6} {card['name']} ({card['subtitle']})")
    if rendered["sentinel"]["visible"]:
        print("  ... more available")
    for message in rendered["notifications"]["messages"]:
        print(f"! {message['title']}: {message['message']}")
    view.unmount()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="medstock", description="Personal medicine stock client")
    parser.add_argument("--env-file", default=None, help="Optional .env file with MEDSTOCK_* settings")
    parser.add_argument("--verbose", action="store_true")
    subcommands = parser.add_subparsers(dest="command")

    login = subcommands.add_parser("login", help="Sign in and remember the session token")
    login.add_argument("email")
    login.add_argument("password")

    subcommands.add_parser("logout", help="Forget the stored session token")

    stocks = subcommands.add_parser("stocks", help="List your stocks")
    stocks.add_argument("--pages", type=int, default=1)
    return parser


def run(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    try:
        config = load_config(args.env_file)
    except ConfigError as exc:
        print(f"Configuration error: {exc}")
        return 2

    app = MedStockApp(config=config)
    result = app.start()

    if args.command == "login":
        result = app.login(args.email, args.password)
        if result.error_message:
            print(f"Login failed: {result.error_message}")
            return 1
        print("Signed in.")
        return 0
    if args.command == "logout":
        app.logout()
        print("Signed out.")
        return 0
    if args.command == "stocks":
        if result.route is Route.LOGIN:
            print("Login required.")
            return 1
        return asyncio.run(print_stocks(app, args.pages))

    if result.route is Route.LOGIN:
        print("MedStock is ready: login required.")
    else:
        print("MedStock is ready: session restored.")
    return 0


if __name__ == "__main__":
    raise SystemExit(run())
