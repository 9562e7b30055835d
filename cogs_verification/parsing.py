"""
Report parsing for the verification relay.

Responsibilities:
- Decide which inbound messages are reports and which are noise.
- Gold channel: "gold: <player> <value>" (label case-insensitive).
- Damage category threads: screenshot attachment + leading value, the thread
  title is the player.
- Turn an accepted message into an immutable Record.

This module has no Discord client state and no network, so the message is only
inspected through its attributes (author, channel, content, attachments,
created_at).
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from cogs_verification.models import Record, RecordKind


NUMERIC_RE = re.compile(r"^\d[\d.,]*$")
SUFFIX_RE = re.compile(r"^(k|m|b|t|qa|qi|sx|sp|oc|no|dc)$", re.IGNORECASE)


# -----------------------------
# Text rules
# -----------------------------

def parse_gold_report(content: str) -> Optional[Tuple[str, str]]:
    """
    Returns (player, value) for "gold: <player> <value> [...]", else None.
    Anything after the value is ignored.
    """
    label, sep, rest = (content or "").partition(":")
    if not sep:
        return None
    if label.strip().lower() != RecordKind.GOLD.value:
        return None

    parts = rest.split()
    if len(parts) < 2:
        return None
    return parts[0], parts[1]


def parse_damage_amount(content: str) -> str:
    """
    Leading damage value of a screenshot caption.

    "103T" -> "103T", "50 T extra" -> "50T", "1.2 Qa" -> "1.2Qa".
    Returns "" when there is nothing usable.
    """
    tokens = (content or "").split()
    if not tokens:
        return ""

    amount = tokens[0]
    # number followed by a separate magnitude suffix (K, M, B, T, Qa ...)
    if NUMERIC_RE.match(amount) and len(tokens) > 1 and SUFFIX_RE.match(tokens[1]):
        amount += tokens[1]
    return amount


def to_epoch_ms(created_at) -> int:
    return int(created_at.timestamp() * 1000)


# -----------------------------
# Discord message classification
# -----------------------------

def is_damage_thread(channel, damage_category_id: int) -> bool:
    # threads expose parent_id; plain text channels don't
    if getattr(channel, "parent_id", None) is None:
        return False
    return getattr(channel, "category_id", None) == damage_category_id


def attachment_urls(msg) -> List[str]:
    return [a.url for a in (getattr(msg, "attachments", None) or []) if getattr(a, "url", None)]


def classify_message(msg, gold_channel_id: int, damage_category_id: int, bot_user_id: Optional[int] = None) -> Optional[Record]:
    """
    Returns the Record a message represents, or None if it should be ignored.
    """
    author = msg.author
    if getattr(author, "bot", False):
        return None
    if bot_user_id is not None and author.id == bot_user_id:
        return None

    channel = msg.channel
    content = getattr(msg, "content", "") or ""

    if channel.id == gold_channel_id:
        parsed = parse_gold_report(content)
        if parsed is None:
            return None
        player, value = parsed
        return Record(
            kind=RecordKind.GOLD,
            subject=player,
            amount=value,
            submitted_at_ms=to_epoch_ms(msg.created_at),
        )

    if is_damage_thread(channel, damage_category_id):
        urls = attachment_urls(msg)
        if not urls:
            return None  # discussion, not a report

        title = (getattr(channel, "name", "") or "").strip()
        amount = parse_damage_amount(content)
        if not title or not amount:
            return None

        return Record(
            kind=RecordKind.DAMAGE,
            subject=title,
            amount=amount,
            submitted_at_ms=to_epoch_ms(msg.created_at),
            evidence_urls=tuple(urls),
        )

    return None
