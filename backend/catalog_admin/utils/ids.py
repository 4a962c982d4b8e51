import re
import uuid
from typing import Any, Iterable, List, Optional

OBJECT_ID_PATTERN = re.compile(r"[a-fA-F0-9]{24}")


def is_object_id(value: Any) -> bool:
    """True for 24-hex identifier strings (the catalog's id format), either case."""
    return isinstance(value, str) and OBJECT_ID_PATTERN.fullmatch(value) is not None


def normalize_object_id(value: Any) -> Optional[str]:
    """Canonical lower-case form of a well-formed id, None otherwise."""
    return value.lower() if is_object_id(value) else None


def new_object_id() -> str:
    return uuid.uuid4().hex[:24]


def filter_object_ids(values: Iterable[Any]) -> List[str]:
    """Keep well-formed ids in canonical form, preserving order and dropping duplicates."""
    seen = set()
    out: List[str] = []
    for value in values or []:
        normalized = normalize_object_id(value)
        if normalized is None or normalized in seen:
            continue
        seen.add(normalized)
        out.append(normalized)
    return out
