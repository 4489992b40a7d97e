import json
from pathlib import Path
from typing import Any

_SCHEMA_CACHE: dict[str, dict[str, Any]] = {}

CONFIG_SCHEMA_PATH = Path(__file__).resolve().parent.parent / "schemas" / "config.schema.json"


def format_schema_error(error: Any) -> str:
    path = ".".join([str(part) for part in error.path])
    return f"{error.message} at {path}" if path else str(error.message)


class JsonSchemaRepository:
    def __init__(self, local_schema_path: Path = CONFIG_SCHEMA_PATH) -> None:
        self.local_schema_path = local_schema_path

    def load_schema(self) -> dict[str, Any]:
        key = str(self.local_schema_path.resolve())
        cached = _SCHEMA_CACHE.get(key)
        if cached is not None:
            return cached
        schema = json.loads(self.local_schema_path.read_text(encoding="utf-8"))
        _SCHEMA_CACHE[key] = schema
        return schema
