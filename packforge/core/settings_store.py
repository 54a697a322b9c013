"""Project settings store with last-write-wins bulk-merge semantics.

A single mutable mapping threaded through description evaluation. Every
explicit assignment and every bulk merge is a write; whichever write happens
last for a key is the value the store reflects. Merges are not deferred or
batched: their position among the description's statements is what decides
precedence.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, MutableMapping
from typing import Any

import yaml

logger = logging.getLogger(__name__)


class SettingsStore(MutableMapping[str, Any]):
    """Symbolic key → arbitrary value configuration map.

    Parameters
    ----------
    initial:
        Optional starting values (e.g. settings declared by the platform).
    """

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    # ------------------------------------------------------------------
    # Mapping protocol
    # ------------------------------------------------------------------

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"SettingsStore({self._data!r})"

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    def merge(self, other: Mapping[str, Any], *, source: str = "") -> list[str]:
        """Overwrite-on-conflict union of *other* into this store.

        Keys only present locally are untouched; keys only present in
        *other* are added. Returns the keys written.
        """
        written: list[str] = []
        for key, value in other.items():
            self._data[key] = value
            written.append(key)
        logger.debug(
            "Merged %d setting(s)%s: %s",
            len(written),
            f" from {source}" if source else "",
            ", ".join(sorted(map(str, written))),
        )
        return written

    def snapshot(self) -> dict[str, Any]:
        """Return a shallow copy of the current key → value content."""
        return dict(self._data)

    def to_yaml(self) -> str:
        """Serialize the current content as a YAML mapping."""
        return yaml.safe_dump(self.snapshot(), default_flow_style=False, sort_keys=True)
