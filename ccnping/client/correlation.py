"""
Outstanding probe tracking for the ping client.
"""

import threading
from dataclasses import dataclass
from typing import Dict

from ..core.errors import DuplicateProbeError, ProbeNotFoundError
from ..core.name import Name


@dataclass(frozen=True)
class ProbeRecord:
    """One in-flight probe: its number and when it was sent."""
    identifier: int
    sent_at: float


class CorrelationTable:
    """Maps the full Interest name of each pending probe to its record.

    A record is read exactly once: :meth:`resolve` removes it, so a second
    reply or timeout for the same name raises :class:`ProbeNotFoundError`.
    """

    def __init__(self):
        self._entries: Dict[Name, ProbeRecord] = {}
        self._lock = threading.RLock()

    def record(self, key: Name, identifier: int, sent_at: float) -> ProbeRecord:
        entry = ProbeRecord(identifier, sent_at)
        with self._lock:
            if key in self._entries:
                raise DuplicateProbeError(f"Probe {key} is already pending")
            self._entries[key] = entry
        return entry

    def resolve(self, key: Name) -> ProbeRecord:
        with self._lock:
            try:
                return self._entries.pop(key)
            except KeyError:
                raise ProbeNotFoundError(key) from None

    def pending_count(self) -> int:
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.pending_count()

    def __contains__(self, key: Name) -> bool:
        with self._lock:
            return key in self._entries
