from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from functools import lru_cache

from app.config import settings
from app.services.entity_store import EntityStore
from app.services.memory_entity_store import MemoryEntityStore

STORE_KINDS = {'sql', 'memory'}


@lru_cache(maxsize=1)
def selected_store_kind() -> str:
    kind = settings.entity_store.strip().lower()
    if kind not in STORE_KINDS:
        raise ValueError(f'Unknown ENTITY_STORE {settings.entity_store!r}; expected one of {sorted(STORE_KINDS)}')
    return kind


@lru_cache(maxsize=1)
def get_memory_store() -> MemoryEntityStore:
    from app.seed_example import load_fixture

    store = MemoryEntityStore()
    load_fixture(store)
    return store


@contextmanager
def open_entity_store() -> Iterator[EntityStore]:
    if selected_store_kind() == 'memory':
        yield get_memory_store()
        return

    from app.db import SessionLocal
    from app.services.sql_entity_store import SqlEntityStore

    with SessionLocal() as db:
        yield SqlEntityStore(db)
