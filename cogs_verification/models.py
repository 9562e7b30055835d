from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


class RecordKind(str, Enum):
    GOLD = "gold"
    DAMAGE = "damage"


@dataclass(frozen=True)
class Record:
    kind: RecordKind
    subject: str
    amount: str
    submitted_at_ms: int
    evidence_urls: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PendingEntry:
    relay_message_id: int
    record: Record
