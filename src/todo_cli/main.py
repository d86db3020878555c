from __future__ import annotations

import argparse
import logging
import sys
from typing import Dict, List, Optional, Sequence, TextIO

from pydantic import BaseModel, ValidationError

from .commands import COMMANDS, dispatch
from .errors import TodoError
from .repositories import get_repository
from .settings import get_settings

logger = logging.getLogger(__name__)

EXIT_USAGE = 2

_log_handler: Optional[logging.Handler] = None


class UsageError(Exception):
    """Raised instead of exiting when the command line cannot be parsed."""

    def __init__(self, message: str, usage: str) -> None:
        super().__init__(message)
        self.usage = usage


class HelpRequested(Exception):
    """Raised by `-h`/`--help` so the help text goes to the caller's stream."""

    def __init__(self, text: str) -> None:
        super().__init__(text)
        self.text = text


class _Parser(argparse.ArgumentParser):
    subcommands: Dict[str, argparse.ArgumentParser]

    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(f"{self.prog}: error: {message}", self.format_usage())

    def print_help(self, file: Optional[TextIO] = None) -> None:
        raise HelpRequested(self.format_help())


# PUBLIC_INTERFACE
def build_parser() -> _Parser:
    """Return the argument parser for the root command and its subcommands."""
    parser = _Parser(prog="todo", description="Manage a todo list stored in a local database file.")
    parser.add_argument("--db", dest="db_path", default=None, help="database file (env TODO_DB_PATH)")
    parser.add_argument("--name", default=None, help="your name")
    parser.add_argument("-v", "--verbose", action="store_true", help="log diagnostics to stderr")

    sub = parser.add_subparsers(dest="command", metavar="<command>")

    p = sub.add_parser("add", help=COMMANDS["add"].help)
    p.add_argument("text", nargs="+", help="todo item text")

    p = sub.add_parser("get", help=COMMANDS["get"].help)
    p.add_argument("id", help="todo item id")

    p = sub.add_parser("edit", help=COMMANDS["edit"].help)
    p.add_argument("id", help="todo id")
    p.add_argument("text", nargs="+", help="updated text")

    p = sub.add_parser("remove", help=COMMANDS["remove"].help)
    p.add_argument("id", help="id of the todo item to remove")

    sub.add_parser("list", help=COMMANDS["list"].help)

    p = sub.add_parser("help", help="display help information")
    p.add_argument("topic", nargs="?", choices=sorted(COMMANDS), help="command to describe")

    parser.subcommands = sub.choices
    return parser


# PUBLIC_INTERFACE
def parse_command(ns: argparse.Namespace) -> BaseModel:
    """
    Validate the parsed namespace into the typed arguments of its command.

    Raises:
        ValidationError: an argument has the wrong type or is out of range.
    """
    model = COMMANDS[ns.command].args
    values = {k: v for k, v in vars(ns).items() if k in model.model_fields}
    return model.model_validate(values)


def _format_validation_error(command: str, exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "argument"
        parts.append(f"{loc}: {err.get('msg')}")
    return f"todo {command}: error: " + "; ".join(parts)


# PUBLIC_INTERFACE
def configure_logging(level: str, stream: TextIO) -> None:
    """
    Send package diagnostics to `stream` at `level`. Calling it again replaces
    the handler installed by the previous call.
    """
    global _log_handler
    pkg = logging.getLogger("todo_cli")
    if _log_handler is not None:
        pkg.removeHandler(_log_handler)
    _log_handler = logging.StreamHandler(stream)
    _log_handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    pkg.addHandler(_log_handler)
    pkg.setLevel(level)


# PUBLIC_INTERFACE
def main(
    argv: Optional[Sequence[str]] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> int:
    """
    Run one command and return the process exit status.

    - 0: success
    - 1: the command failed (not found, corrupt record, database error)
    - 2: the command line was invalid
    """
    out = stdout or sys.stdout
    err = stderr or sys.stderr
    args: List[str] = list(sys.argv[1:] if argv is None else argv)

    parser = build_parser()
    try:
        ns = parser.parse_args(args)
    except HelpRequested as e:
        out.write(e.text)
        return 0
    except UsageError as e:
        err.write(e.usage)
        err.write(f"{e}\n")
        return EXIT_USAGE

    settings = get_settings().with_overrides(db_path=ns.db_path)
    configure_logging("DEBUG" if ns.verbose else settings.log_level, err)

    if ns.command is None:
        if ns.name:
            out.write(f"Hello, root command, I am {ns.name}\n")
        else:
            out.write(parser.format_help())
        return 0

    if ns.command == "help":
        target = parser.subcommands[ns.topic] if ns.topic else parser
        out.write(target.format_help())
        return 0

    try:
        command_args = parse_command(ns)
    except ValidationError as e:
        err.write(parser.subcommands[ns.command].format_usage())
        err.write(_format_validation_error(ns.command, e) + "\n")
        return EXIT_USAGE

    try:
        store = get_repository(settings)
    except TodoError as e:
        logger.debug("cannot open store at %s", settings.db_path, exc_info=True)
        err.write(f"todo: error: {e}\n")
        return 1

    return dispatch(ns.command, store, command_args, out)


# PUBLIC_INTERFACE
def run() -> None:
    """Console-script entry point."""
    sys.exit(main())
