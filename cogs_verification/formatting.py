"""
Plain-text messages posted by the verification relay.
"""

from __future__ import annotations

from typing import List

from cogs_verification.models import PendingEntry, Record, RecordKind


KIND_LABELS = {
    RecordKind.GOLD: "💰 **Gold Donation**",
    RecordKind.DAMAGE: "⚔️ **Damage Report**",
}

MAX_MESSAGE_CHARS = 1900
MAX_FIELD_CHARS = 100


def clip(text: str, limit: int = MAX_FIELD_CHARS) -> str:
    return text if len(text) <= limit else text[:limit - 3] + "..."


def format_relay_message(record: Record) -> str:
    unix_timestamp = record.submitted_at_ms // 1000
    lines = [
        f"{KIND_LABELS[record.kind]}: **{clip(record.subject)}** {clip(record.amount)}",
        f"Submitted <t:{unix_timestamp}:f>",
    ]
    for i, url in enumerate(record.evidence_urls):
        # URLs are never cut; the verified edit needs room for strike marks
        if sum(len(x) + 5 for x in lines) + len(url) > MAX_MESSAGE_CHARS - 100:
            lines.append(f"... and {len(record.evidence_urls) - i} more attachment(s)")
            break
        lines.append(url)
    return "\n".join(lines)


def format_verified_message(content: str, verifier: str) -> str:
    struck = [f"~~{line}~~" for line in (content or "").splitlines() if line.strip()]
    struck.append(f"✅ **VERIFIED by {clip(verifier)}**")
    return "\n".join(struck)


def format_delivery_warning(record: Record, reason: str) -> str:
    return (
        f"⚠️ **Verification Failed** for {clip(record.subject)} ({clip(record.amount)}). "
        f"Ledger service returned an error: `{reason}`"
    )


def format_pending_list(entries: List[PendingEntry]) -> str:
    if not entries:
        return "No records are waiting for verification."

    lines = [f"Pending verification ({len(entries)}):"]
    for i, entry in enumerate(entries):
        r = entry.record
        line = f"- `{entry.relay_message_id}` {r.kind.value}: **{clip(r.subject)}** {clip(r.amount)}"
        if sum(len(x) + 1 for x in lines) + len(line) > MAX_MESSAGE_CHARS:
            lines.append(f"... and {len(entries) - i} more")
            break
        lines.append(line)
    return "\n".join(lines)
