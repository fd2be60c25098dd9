"""Shared plumbing for repositories: error wrapping and optional transactions."""

from __future__ import annotations

import functools
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from sqlalchemy import Connection
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from fwdctl.errors import StoreError

F = TypeVar("F", bound=Callable[..., Any])


def store_errors(func: F) -> F:
    """Re-raise any ``SQLAlchemyError`` from *func* as :class:`StoreError`."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except SQLAlchemyError as exc:
            raise StoreError(
                f"{func.__qualname__} failed: {exc}",
                detail={"operation": func.__name__},
            ) from exc

    return wrapper  # type: ignore[return-value]


class Repository:
    """Base class holding the engine.

    Write methods accept an optional ``conn`` so a caller can group several
    writes in one ``engine.begin()`` transaction; without it each call
    commits on its own.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @contextmanager
    def _begin(self, conn: Connection | None) -> Iterator[Connection]:
        if conn is not None:
            yield conn
            return
        with self._engine.begin() as own:
            yield own

    @contextmanager
    def _read(self, conn: Connection | None) -> Iterator[Connection]:
        if conn is not None:
            yield conn
            return
        with self._engine.connect() as own:
            yield own
