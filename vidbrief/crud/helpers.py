"""Helpers for Postgres error handling and row conversion."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, NoReturn

import asyncpg

from vidbrief.core.errors import PersistenceError

# Errors the driver raises for failed statements and lost connections.
DB_ERRORS: tuple[type[BaseException], ...] = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


def raise_for_db_error(exc: BaseException, fallback_message: str, *, data: Any | None = None) -> NoReturn:
    """Convert a driver error to PersistenceError and raise."""
    raise PersistenceError(fallback_message, data=data) from exc


def row_or_none(row: Mapping[str, Any] | None) -> dict[str, Any] | None:
    if row is None:
        return None
    return dict(row)
