# dirmirror/store/registry.py
"""
Store engine registry.

Design principle: NO SILENT FALLBACK
- If the user asks for "json", they get the JSON engine or an error
- Without an explicit engine, the database path suffix decides
  (".json" -> json, anything else -> sqlite)
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional

from dirmirror.core.exceptions import ConfigError, StoreError
from dirmirror.logging import get_logger
from dirmirror.logging.tags import STORE
from dirmirror.store.base import MetadataStore
from dirmirror.store.json_store import JsonMetadataStore
from dirmirror.store.sqlite import SqliteMetadataStore

logger = get_logger(__name__)

StoreFactory = Callable[..., MetadataStore]

STORE_REGISTRY: Dict[str, StoreFactory] = {
    SqliteMetadataStore.engine: SqliteMetadataStore,
    JsonMetadataStore.engine: JsonMetadataStore,
}

DEFAULT_ENGINE = SqliteMetadataStore.engine


def available_engines() -> List[str]:
    return sorted(STORE_REGISTRY)


def resolve_engine(path: str | Path, engine: Optional[str] = None) -> str:
    """Pick the engine name for a database path."""
    if engine is not None:
        if engine not in STORE_REGISTRY:
            raise ConfigError(
                f"Unknown store engine: {engine!r}. Available: {', '.join(available_engines())}"
            )
        return engine
    if Path(path).suffix.lower() == ".json":
        return JsonMetadataStore.engine
    return DEFAULT_ENGINE


def open_store(path: str | Path, engine: Optional[str] = None, *, create: bool = True) -> MetadataStore:
    """
    Open a metadata store.

    Args:
        path: Database location.
        engine: Engine name; None picks one from the path suffix.
        create: Create an empty store if none exists. With False, a
            missing database raises StoreError.

    Returns:
        An open MetadataStore; the caller must close() it.
    """
    name = resolve_engine(path, engine)
    logger.debug(f"{STORE} Opening '{path}' with engine '{name}'")
    return STORE_REGISTRY[name](path, create=create)


@contextmanager
def managed_store(
    path: str | Path,
    engine: Optional[str] = None,
    *,
    create: bool = True,
) -> Iterator[MetadataStore]:
    """
    Open a store and close it exactly once on every exit path.

    If the body fails, a failure while closing is logged and the
    original error propagates. On success a close failure is raised.
    """
    store = open_store(path, engine, create=create)
    try:
        yield store
    except BaseException:
        try:
            store.close()
        except StoreError as e:
            logger.error(f"{STORE} {e}")
        raise
    store.close()


__all__ = [
    "DEFAULT_ENGINE",
    "STORE_REGISTRY",
    "available_engines",
    "managed_store",
    "open_store",
    "resolve_engine",
]
