from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from .codec import decode_todo, encode_todo
from .db import Bucket, Database, Transaction
from .errors import FormatError, NotFound, StoreError
from .keys import decode_key, encode_key
from .models import Todo
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListResult:
    """
    Snapshot returned by `TodoStore.list`.

    - items: decoded todos in ascending id order
    - errors: one FormatError per stored entry that could not be decoded
    """

    items: List[Todo] = field(default_factory=list)
    errors: List[FormatError] = field(default_factory=list)

    def __iter__(self) -> Iterator[Todo]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


# PUBLIC_INTERFACE
class TodoStore:
    """
    Transactional access to the todo bucket.

    Every public method runs in exactly one transaction of the underlying
    database. Nothing is cached between calls.
    """

    def __init__(self, db: Database, bucket: str = "todos") -> None:
        self._db = db
        self.bucket_name = bucket
        with self._db.update() as tx:
            tx.create_bucket_if_not_exists(bucket)

    def _bucket(self, tx: Transaction) -> Bucket:
        b = tx.bucket(self.bucket_name)
        if b is None:
            raise StoreError(f"bucket {self.bucket_name!r} not found")
        return b

    @staticmethod
    def _decode(key: bytes, value: bytes) -> Todo:
        todo_id = decode_key(key)
        try:
            todo = decode_todo(value)
        except FormatError as e:
            raise FormatError(e.reason, todo_id) from e
        if todo.id != todo_id:
            raise FormatError(f"record id {todo.id} stored under key {todo_id}", todo_id)
        return todo

    def next_id(self) -> int:
        """Consume and return the next id of the counter."""
        with self._db.update() as tx:
            return self._bucket(tx).next_sequence()

    def put(self, todo: Todo) -> None:
        """Write a todo at its id, replacing whatever was stored there."""
        with self._db.update() as tx:
            self._bucket(tx).put(encode_key(todo.id), encode_todo(todo))

    def get(self, todo_id: int) -> Todo:
        """
        Return the todo stored under `todo_id`.

        Raises:
            NotFound: no todo has this id.
            FormatError: the stored value is corrupt.
        """
        key = encode_key(todo_id)
        with self._db.view() as tx:
            value = self._bucket(tx).get(key)
        if value is None:
            raise NotFound(todo_id)
        return self._decode(key, value)

    def delete(self, todo_id: int) -> bool:
        """Remove a todo. Returns False if it was already absent."""
        key = encode_key(todo_id)
        with self._db.update() as tx:
            b = self._bucket(tx)
            existed = b.get(key) is not None
            b.delete(key)
        logger.debug("delete todo %d existed=%s", todo_id, existed)
        return existed

    def list(self) -> ListResult:
        """
        Read every todo in ascending id order from a single snapshot.

        Corrupt entries do not abort the listing; they are collected in
        `ListResult.errors`.
        """
        result = ListResult()
        with self._db.view() as tx:
            for key, value in self._bucket(tx):
                try:
                    result.items.append(self._decode(key, value))
                except FormatError as e:
                    logger.warning("skipping corrupt entry: %s", e)
                    result.errors.append(e)
        return result

    def add(self, text: str) -> Todo:
        """Allocate an id and store a new todo in one write transaction."""
        with self._db.update() as tx:
            b = self._bucket(tx)
            todo = Todo(id=b.next_sequence(), text=text)
            b.put(encode_key(todo.id), encode_todo(todo))
        logger.debug("added todo %d", todo.id)
        return todo

    def edit(self, todo_id: int, text: str) -> Todo:
        """
        Replace the text of an existing todo.

        Raises NotFound rather than creating the id, so ids only ever come
        from the counter.
        """
        key = encode_key(todo_id)
        todo = Todo(id=todo_id, text=text)
        with self._db.update() as tx:
            b = self._bucket(tx)
            if b.get(key) is None:
                raise NotFound(todo_id)
            b.put(key, encode_todo(todo))
        logger.debug("edited todo %d", todo_id)
        return todo


# PUBLIC_INTERFACE
def get_repository(settings: Optional[Settings] = None) -> TodoStore:
    """
    Open the database named by the settings and return a store bound to the
    configured bucket, creating both on first use.
    """
    s = settings or get_settings()
    return TodoStore(Database(s.db_path, timeout=s.lock_timeout), bucket=s.bucket)
