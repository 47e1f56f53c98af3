"""
Metadata editor - key/value editing of primitive document meta entries

Entries are edited as text and only written back on apply_entries(). Values
that are not str/int/float/bool are never listed, so nested meta survives
untouched.
"""

import itertools
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from engine.document_engine import DocumentEngine

_entry_ids = itertools.count(1)


def is_primitive(value: Any) -> bool:
    return value is not None and isinstance(value, (str, int, float, bool))


def format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass
class MetadataEntry:
    id: str
    key: str = ""
    value: str = ""
    read_only: bool = False


def create_entry(key: str = "", value: str = "", read_only: bool = False) -> MetadataEntry:
    return MetadataEntry(id=f"entry-{next(_entry_ids)}", key=key, value=value, read_only=read_only)


class MetadataEditor:
    """Editable view over DocumentEngine.document.meta"""

    def __init__(self, engine: DocumentEngine, protected_keys: Iterable[str] = ()):
        self._engine = engine
        self.protected_keys = frozenset(protected_keys)
        self.entries: List[MetadataEntry] = []
        self.reset_entries()

    def _primitive_items(self) -> Dict[str, Any]:
        return {k: v for k, v in self._engine.document.meta.items() if is_primitive(v)}

    def reset_entries(self) -> None:
        """Rebuild the entry list from the current document meta."""
        self.entries = [
            create_entry(key, format_value(value), key in self.protected_keys)
            for key, value in self._primitive_items().items()
        ]

    def add_entry(self, key: str = "", value: str = "") -> MetadataEntry:
        entry = create_entry(key, value)
        self.entries.append(entry)
        return entry

    def get_entry(self, entry_id: str) -> Optional[MetadataEntry]:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        return None

    def update_entry(self, entry_id: str, field: str, text: str) -> None:
        """Set an entry's key or value; read-only entries are left alone."""
        if field not in ("key", "value"):
            raise ValueError(f"Unknown entry field: {field}")
        entry = self.get_entry(entry_id)
        if entry is None or entry.read_only:
            return
        setattr(entry, field, text)

    def remove_entry(self, entry_id: str) -> None:
        self.entries = [e for e in self.entries if e.id != entry_id or e.read_only]

    def apply_entries(self) -> None:
        """
        Write entries back as string values. Primitive keys no longer listed
        are deleted unless protected; blank keys are skipped.
        """
        payload: Dict[str, Any] = {}
        for entry in self.entries:
            key = entry.key.strip()
            if key:
                payload[key] = entry.value
        for key in self._primitive_items():
            if key not in payload and key not in self.protected_keys:
                payload[key] = None
        self._engine.update_meta(payload)
