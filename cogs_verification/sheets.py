"""
Ledger service client for verified records.

Posts one JSON document per approved record to the Google Sheets web app
(Apps Script) configured in LEDGER_WEBHOOK_URL:

    {
        "type": "gold" | "damage",
        "player": "<subject>",
        "value": "<amount as submitted>",
        "verifier": "<approving reviewer's display name>",
        "originalTimestampMs": <submission time, epoch ms>
    }

Notes:
- Any 2xx counts as stored. The body is opaque and only used for logs.
- Uses the bot-wide aiohttp session (bot.session).
- No retries here; a failed delivery is retried by re-approving.
"""

from __future__ import annotations

import asyncio

import aiohttp

from cogs_verification.models import Record


class DeliveryError(RuntimeError):
    """The ledger service did not accept a record."""


def build_payload(record: Record, verifier: str) -> dict:
    return {
        "type": record.kind.value,
        "player": record.subject,
        "value": record.amount,
        "verifier": verifier,
        "originalTimestampMs": record.submitted_at_ms,
    }


class LedgerServiceClient:
    def __init__(self, session: aiohttp.ClientSession, url: str):
        self.session = session
        self.url = url

    async def deliver(self, record: Record, verifier: str) -> str:
        """
        Returns the response body on success, raises DeliveryError otherwise.
        """
        payload = build_payload(record, verifier)

        try:
            async with self.session.post(
                self.url,
                json=payload,
                headers={"Content-Type": "application/json"},
                allow_redirects=True,
            ) as resp:
                body = await resp.text(errors="replace")
                status = resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DeliveryError(f"Network error: {str(e) or type(e).__name__}") from e

        if not 200 <= status < 300:
            # Include small snippet for the review channel
            snippet = (body[:200] + "...") if len(body) > 200 else body
            raise DeliveryError(f"HTTP {status}: {snippet}")

        return body
