# app/models/immutability.py
"""
ORM-level append-only enforcement.

Transfers, dispensings and stock movements are audit rows: once
inserted they are never updated or deleted. Mapper events reject any
flush that would do either, before SQL reaches the database.

    register_immutability_listeners()    # once, at session-factory creation
    unregister_immutability_listeners()  # tests only
"""

import logging

from sqlalchemy import event, inspect

from app.core.errors import ImmutableRecordError

logger = logging.getLogger(__name__)


def _append_only_models() -> list[type]:
    # Inline import: models import app.core, app.core.database imports us.
    from app.models.admission import Transfer
    from app.models.pharmacy import Dispensing, StockMovement

    return [Transfer, Dispensing, StockMovement]


def _changed_columns(mapper, target) -> list[str]:
    state = inspect(target)
    return [
        prop.key
        for prop in mapper.column_attrs
        if state.attrs[prop.key].history.has_changes()
    ]


def _check_append_only_update(mapper, connection, target):
    changed = _changed_columns(mapper, target)
    if not changed:
        return
    logger.warning(
        "Blocked update of append-only row table=%s id=%s fields=%s",
        mapper.local_table.name,
        getattr(target, "id", None),
        changed,
    )
    raise ImmutableRecordError(
        f"{type(target).__name__} rows are append-only and cannot be modified."
    )


def _check_append_only_delete(mapper, connection, target):
    logger.warning(
        "Blocked delete of append-only row table=%s id=%s",
        mapper.local_table.name,
        getattr(target, "id", None),
    )
    raise ImmutableRecordError(
        f"{type(target).__name__} rows are append-only and cannot be deleted."
    )


def register_immutability_listeners() -> None:
    """Idempotent; safe to call from every session-factory setup."""
    for model in _append_only_models():
        if not event.contains(model, "before_update", _check_append_only_update):
            event.listen(model, "before_update", _check_append_only_update)
        if not event.contains(model, "before_delete", _check_append_only_delete):
            event.listen(model, "before_delete", _check_append_only_delete)


def unregister_immutability_listeners() -> None:
    for model in _append_only_models():
        if event.contains(model, "before_update", _check_append_only_update):
            event.remove(model, "before_update", _check_append_only_update)
        if event.contains(model, "before_delete", _check_append_only_delete):
            event.remove(model, "before_delete", _check_append_only_delete)
