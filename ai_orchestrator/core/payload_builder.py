"""
Record payload builder.

Maps a sentence's positional columns onto the display names the external
service expects.

Dependencies: None (pure domain layer)
System role: Sentence-to-payload mapping for labeling and learning jobs
"""

from typing import Any, Mapping

FIELD_COUNT = 5


def build_field_map(record: Any) -> dict[str, str]:
    """
    Build the ``{display_name: value}`` object for one sentence.

    Columns ``field1``..``field5`` are read from the record (attribute or
    mapping access). ``field_mapping`` maps the column number as a string
    ("1".."5") to a display name; unmapped columns keep ``field{i}``.
    Empty columns are omitted.

    Args:
        record: Sentence ORM row, dataclass, or mapping

    Returns:
        dict[str, str]: Non-empty columns keyed by display name
    """
    mapping = _read(record, "field_mapping") or {}
    fields: dict[str, str] = {}

    for i in range(1, FIELD_COUNT + 1):
        value = _read(record, f"field{i}")
        if not value:
            continue
        key = mapping.get(str(i)) or f"field{i}"
        fields[key] = value

    return fields


def _read(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)
