"""
In-memory table of records waiting for a reviewer.

Keyed by the ID of the relay message posted in the review channel. Nothing is
persisted: a restart forgets every pending record.

All access happens on the bot's event loop, so no locking is needed. claim()
marks an entry in flight before the first await of a delivery, which keeps
two quick approvals on the same message from both delivering.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Set

from cogs_verification.models import PendingEntry, Record


logger = logging.getLogger(__name__)


class VerificationLedger:
    def __init__(self):
        self._pending: Dict[int, Record] = {}
        self._inflight: Set[int] = set()

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, relay_message_id: int) -> bool:
        return relay_message_id in self._pending

    def put(self, relay_message_id: int, record: Record) -> bool:
        if relay_message_id in self._pending:
            logger.error(
                "Relay message %s is already pending (%s); keeping the existing record",
                relay_message_id, self._pending[relay_message_id],
            )
            return False
        self._pending[relay_message_id] = record
        return True

    def get(self, relay_message_id: int) -> Optional[Record]:
        return self._pending.get(relay_message_id)

    def remove(self, relay_message_id: int) -> None:
        self._pending.pop(relay_message_id, None)
        self._inflight.discard(relay_message_id)

    def claim(self, relay_message_id: int) -> Optional[Record]:
        """
        Returns the record and marks it in flight, or None if it is absent or
        another approval is already delivering it.
        """
        record = self._pending.get(relay_message_id)
        if record is None or relay_message_id in self._inflight:
            return None
        self._inflight.add(relay_message_id)
        return record

    def release(self, relay_message_id: int) -> None:
        self._inflight.discard(relay_message_id)

    def is_inflight(self, relay_message_id: int) -> bool:
        return relay_message_id in self._inflight

    def entries(self) -> List[PendingEntry]:
        return [PendingEntry(relay_message_id=k, record=v) for k, v in self._pending.items()]
