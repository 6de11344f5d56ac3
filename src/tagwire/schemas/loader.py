from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Union

import yaml
from pydantic import ValidationError

from tagwire.core.exceptions import SchemaError
from tagwire.models.schema_config import SchemaDocument


def read_structured_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a JSON or YAML mapping from disk.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the extension is not .json/.yaml/.yml or the top level is not a mapping
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with open(file_path, "r", encoding="utf-8") as f:
        if file_path.suffix == ".json":
            data = json.load(f)
        elif file_path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(f)
        else:
            raise ValueError(
                f"Unsupported file format: {file_path.suffix}. "
                "Use .json or .yaml"
            )

    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the top level of {path}, got {type(data).__name__}")
    return data


def parse_schema_document(data: Dict[str, Any]) -> SchemaDocument:
    try:
        return SchemaDocument.model_validate(data)
    except ValidationError as exc:
        revision = data.get("revision", "?") if isinstance(data, dict) else "?"
        raise SchemaError(f"Invalid schema document for revision {revision!r}: {exc}") from exc


def load_schema_document(path: Union[str, Path]) -> SchemaDocument:
    """Read and validate a schema document; does not register it."""
    return parse_schema_document(read_structured_file(path))
