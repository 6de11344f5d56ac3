from __future__ import annotations

import threading
from importlib import resources
from typing import Iterable

import yaml

from tagwire.schemas.loader import parse_schema_document
from tagwire.schemas.registry import SchemaRegistry


BUILTIN_SCHEMA_FILES: tuple[str, ...] = (
    "bot_api_7_10.yaml",
    "bot_api_9_1.yaml",
)


_LOADED = False
_LOAD_LOCK = threading.Lock()


def load_builtin_schemas(*, reload: bool = False, files: Iterable[str] = BUILTIN_SCHEMA_FILES) -> None:
    """Register the schema revisions bundled with the package.

    In production, call with reload=False (default) so repeated calls are cheap.
    In tests, call with reload=True to clear the registry and register again.
    Revisions already registered by the caller are left untouched unless reloading.
    """

    global _LOADED

    with _LOAD_LOCK:
        if _LOADED and not reload and SchemaRegistry.revisions():
            return

        if reload:
            SchemaRegistry.clear()

        package = resources.files("tagwire.schemas") / "data"
        documents = []
        for name in files:
            text = (package / name).read_text(encoding="utf-8")
            document = parse_schema_document(yaml.safe_load(text))
            if SchemaRegistry.try_get(document.revision) is None:
                documents.append(document)

        SchemaRegistry.register_all(documents)

        _LOADED = True
