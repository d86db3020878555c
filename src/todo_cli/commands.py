from __future__ import annotations

import logging
from typing import Callable, Dict, NamedTuple, TextIO, Type

from pydantic import BaseModel

from .errors import TodoError
from .repositories import TodoStore
from .schemas import AddArgs, EditArgs, GetArgs, ListArgs, RemoveArgs

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


def _line(out: TextIO, text: str) -> None:
    out.write(text + "\n")


# PUBLIC_INTERFACE
def add_todo(store: TodoStore, args: AddArgs, out: TextIO) -> int:
    """
    Create a todo with a fresh id and echo it.
    """
    try:
        todo = store.add(args.text)
    except TodoError as e:
        _line(out, f"Error adding todo: {e}")
        return EXIT_FAILURE
    _line(out, f"{todo.id}) {todo.text}")
    _line(out, "Todo successfully added")
    return EXIT_OK


# PUBLIC_INTERFACE
def get_todo(store: TodoStore, args: GetArgs, out: TextIO) -> int:
    """
    Print a single todo by id.
    """
    try:
        todo = store.get(args.id)
    except TodoError as e:
        _line(out, f"Error: {e}")
        return EXIT_FAILURE
    _line(out, f"{todo.id})  {todo.text}")
    return EXIT_OK


# PUBLIC_INTERFACE
def edit_todo(store: TodoStore, args: EditArgs, out: TextIO) -> int:
    """
    Replace the text of an existing todo. Unknown ids are an error.
    """
    try:
        store.edit(args.id, args.text)
    except TodoError as e:
        _line(out, f"Error editing todo: {e}")
        return EXIT_FAILURE
    _line(out, "Todo successfully edited")
    return EXIT_OK


# PUBLIC_INTERFACE
def remove_todo(store: TodoStore, args: RemoveArgs, out: TextIO) -> int:
    """
    Delete a todo. Removing an id that does not exist still succeeds.
    """
    try:
        store.delete(args.id)
    except TodoError as e:
        _line(out, f"Error deleting item: {e}")
        return EXIT_FAILURE
    _line(out, f"Removed, todo - {args.id}")
    return EXIT_OK


# PUBLIC_INTERFACE
def list_todos(store: TodoStore, args: ListArgs, out: TextIO) -> int:
    """
    Print every todo in id order between a header and a footer.

    Corrupt entries are reported inline and make the command exit non-zero,
    but never hide the valid ones.
    """
    _line(out, "Listing all items")
    try:
        result = store.list()
    except TodoError as e:
        _line(out, f"error: {e}")
        _line(out, "End of list")
        return EXIT_FAILURE
    for todo in result:
        _line(out, f"{todo.id}) {todo.text}")
    for err in result.errors:
        _line(out, f"error: {err}")
    _line(out, "End of list")
    return EXIT_FAILURE if result.errors else EXIT_OK


class Command(NamedTuple):
    args: Type[BaseModel]
    handler: Callable[[TodoStore, BaseModel, TextIO], int]
    help: str


COMMANDS: Dict[str, Command] = {
    "add": Command(AddArgs, add_todo, "add item"),
    "get": Command(GetArgs, get_todo, "get item"),
    "edit": Command(EditArgs, edit_todo, "edit item"),
    "remove": Command(RemoveArgs, remove_todo, "remove item"),
    "list": Command(ListArgs, list_todos, "list all items"),
}


# PUBLIC_INTERFACE
def dispatch(name: str, store: TodoStore, args: BaseModel, out: TextIO) -> int:
    """Run the named command with its already validated arguments."""
    command = COMMANDS[name]
    if not isinstance(args, command.args):
        raise TypeError(f"{name} expects {command.args.__name__}, got {type(args).__name__}")
    logger.debug("dispatching %s", name)
    return command.handler(store, args, out)
