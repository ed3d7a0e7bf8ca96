"""Command-line interface for the messagely service."""

from __future__ import annotations
import argparse
import logging
import sys
from getpass import getpass
from pathlib import Path
from typing import Sequence

from messagely.config import Settings, load_settings, with_database_path
from messagely.database import Database
from messagely.errors import MessagelyError
from messagely.service import build_messenger

logger = logging.getLogger("messagely.main")

_KNOWN_COMMANDS = {"serve", "init-db", "add-user", "list-users"}
_MIN_PASSWORD_LENGTH = 8


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a YAML configuration file (defaults to MESSAGELY_CONFIG)",
    )
    common.add_argument(
        "--db",
        dest="db_path",
        type=Path,
        default=None,
        help="Path to the SQLite database (defaults to MESSAGELY_DB_PATH or data/messagely.sqlite3)",
    )

    parser = argparse.ArgumentParser(description="messagely utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", parents=[common], help="Initialise the database")

    serve_parser = subparsers.add_parser("serve", parents=[common], help="Start the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address for the API")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for the HTTP API (default: 8000)",
    )

    add_parser = subparsers.add_parser("add-user", parents=[common], help="Register a new user")
    add_parser.add_argument("username", help="Unique username used to log in")
    add_parser.add_argument("--first-name", default="", help="Display first name")
    add_parser.add_argument("--last-name", default="", help="Display last name")
    add_parser.add_argument("--phone", default="", help="Contact phone number")

    subparsers.add_parser("list-users", parents=[common], help="List registered users")

    args_list = list(argv) if argv is not None else sys.argv[1:]

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in _KNOWN_COMMANDS:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _load_settings(args: argparse.Namespace) -> Settings:
    settings = load_settings(args.config)
    if args.db_path is not None:
        settings = with_database_path(settings, args.db_path.expanduser().resolve(strict=False))
    return settings


def _initialise_database(settings: Settings) -> Database:
    database = Database(settings.database_path)
    database.initialize()
    logger.info("Database initialised at %s", settings.database_path)
    return database


def _serve(*, settings: Settings, database: Database, host: str, port: int) -> None:
    from messagely.service import create_app
    import uvicorn

    logger.info("Starting messagely API on http://%s:%s", host, port)
    app = create_app(settings=settings, database=database)
    uvicorn.run(app, host=host, port=port, log_level="info")


def _prompt_for_password() -> str | None:
    for _ in range(3):
        password = getpass(f"Password (min {_MIN_PASSWORD_LENGTH} characters): ")
        if len(password) < _MIN_PASSWORD_LENGTH:
            print("Password is too short. Please try again.")
            continue
        confirmation = getpass("Confirm password: ")
        if password != confirmation:
            print("Passwords do not match. Please try again.")
            continue
        return password
    return None


def _add_user(settings: Settings, database: Database, args: argparse.Namespace) -> int:
    password = _prompt_for_password()
    if password is None:
        print("Aborted creating user.", file=sys.stderr)
        return 1

    messenger = build_messenger(database, settings)
    try:
        user = messenger.register(args.username, password, args.first_name, args.last_name, args.phone)
    except MessagelyError as exc:
        print(f"Failed to create user: {exc.message}", file=sys.stderr)
        return 1

    print(f"Created user {user.username}")
    return 0


def _list_users(settings: Settings, database: Database) -> int:
    users = build_messenger(database, settings).directory.list()
    if not users:
        print("No users are currently registered.")
        return 0

    print(f"{len(users)} user(s) found:")
    print(f"{'Username':<20}  {'Name':<32}  Phone")
    print("-" * 72)
    for user in users:
        name = f"{user.first_name} {user.last_name}".strip() or "<no name>"
        print(f"{user.username:<20}  {name:<32}  {user.phone}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)
    settings = _load_settings(args)
    database = _initialise_database(settings)

    if args.command == "serve":
        _serve(settings=settings, database=database, host=args.host, port=args.port)
    elif args.command == "add-user":
        return _add_user(settings, database, args)
    elif args.command == "list-users":
        return _list_users(settings, database)
    elif args.command == "init-db":
        print("Database initialisation complete.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
