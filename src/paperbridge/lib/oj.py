"""Thin orjson wrapper so every module serializes JSON the same way."""

from typing import Any

import orjson

JSONDecodeError = orjson.JSONDecodeError


def loads(data: bytes | bytearray | memoryview | str) -> Any:
    """Parse JSON from bytes or str."""
    return orjson.loads(data)


def dumps(obj: Any) -> bytes:
    """Serialize to compact UTF-8 JSON bytes.

    Non-str dict keys are coerced to strings so tool arguments built from
    int-keyed mappings still encode.
    """
    return orjson.dumps(obj, option=orjson.OPT_NON_STR_KEYS)

