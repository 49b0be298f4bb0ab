"""Key-value store over the ``kv_entries`` table.

Provides the small surface the services need: get, set, delete, ordered
prefix scans and prefix deletion. Each write commits immediately.
"""

import json
from typing import Any, Iterator, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from ..models.kv_entry import KVEntry

KeyPath = Sequence[str]


def encode_key(key: KeyPath) -> str:
    if not key:
        raise ValueError("Key must have at least one part")
    if not all(isinstance(part, str) for part in key):
        raise TypeError("Key parts must be strings")
    return json.dumps(list(key), separators=(",", ":"), ensure_ascii=False)


def decode_key(raw: str) -> Tuple[str, ...]:
    return tuple(json.loads(raw))


def _prefix_pattern(prefix: KeyPath) -> str:
    # '["messages","general"]' -> '["messages","general",' matches children only.
    return encode_key(prefix)[:-1] + ","


class KeyValueStore:
    """Tuple-keyed JSON document store."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, key: KeyPath) -> Optional[Any]:
        entry = self.db.get(KVEntry, encode_key(key))
        return entry.value if entry is not None else None

    def set(self, key: KeyPath, value: Any) -> None:
        self.db.merge(KVEntry(key=encode_key(key), value=value))
        self.db.commit()

    def delete(self, key: KeyPath) -> bool:
        entry = self.db.get(KVEntry, encode_key(key))
        if entry is None:
            return False
        self.db.delete(entry)
        self.db.commit()
        return True

    def _scan(self, prefix: KeyPath) -> Iterator[KVEntry]:
        pattern = _prefix_pattern(prefix)
        query = (
            self.db.query(KVEntry)
            .filter(KVEntry.key.startswith(pattern, autoescape=True))
            .order_by(KVEntry.key)
        )
        # LIKE ignores ASCII case on SQLite; keep only exact prefix matches.
        return (entry for entry in query if entry.key.startswith(pattern))

    def iter_prefix(self, prefix: KeyPath) -> Iterator[Tuple[Tuple[str, ...], Any]]:
        for entry in self._scan(prefix):
            yield decode_key(entry.key), entry.value

    def list(self, prefix: KeyPath) -> List[Tuple[Tuple[str, ...], Any]]:
        """All entries strictly under *prefix*, ordered by key."""
        return list(self.iter_prefix(prefix))

    def delete_prefix(self, prefix: KeyPath) -> int:
        """Delete every entry under *prefix* and return how many were removed."""
        keys = [entry.key for entry in self._scan(prefix)]
        if keys:
            self.db.query(KVEntry).filter(KVEntry.key.in_(keys)).delete(synchronize_session=False)
        self.db.commit()
        return len(keys)
