from __future__ import annotations

import json
from importlib import resources
from typing import Any

from ..errors import ConfigInvalid


def load_schema(name: str) -> dict[str, Any]:
    text = resources.files("perfgate").joinpath("schemas", name).read_text(encoding="utf-8")
    return json.loads(text)


def validate_payload(payload: Any, schema_name: str, label: str) -> None:
    import jsonschema

    schema = load_schema(schema_name)
    try:
        jsonschema.validate(payload, schema)
    except jsonschema.ValidationError as exc:
        pointer = "/".join(str(p) for p in exc.absolute_path)
        loc = pointer or "<root>"
        raise ConfigInvalid(f"{label}: schema validation failed at {loc}: {exc.message}") from exc
