"""
Process configuration for the verification relay.

Everything comes from environment variables (a local .env file is honoured
through python-dotenv):
    - TOKEN: Discord bot token
    - GOLD_CHANNEL_ID: channel where players post "gold: <player> <value>"
    - DAMAGE_CATEGORY_ID: category whose threads carry damage screenshots
    - REVIEW_CHANNEL_ID: channel where relay messages are posted for review
    - AUTHORIZED_ROLE_IDS: comma-separated role IDs allowed to approve
    - LEDGER_WEBHOOK_URL: Google Sheets web app that stores verified records

Optional values fall back to DEFAULTS.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import FrozenSet, Mapping, Optional

from dotenv import load_dotenv


DEFAULTS = {
    "PORT": "3000",
    "APPROVAL_EMOJI": "✅",
    "COMMAND_PREFIX": "v.",
}


class ConfigError(ValueError):
    """Raised when a required setting is missing or malformed."""


def _require(env: Mapping[str, str], key: str) -> str:
    value = (env.get(key) or "").strip()
    if not value:
        raise ConfigError(f"{key} not found in environment variables")
    return value


def _require_id(env: Mapping[str, str], key: str) -> int:
    raw = _require(env, key)
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be a numeric Discord ID, got {raw!r}") from None


def parse_role_ids(raw: str) -> FrozenSet[int]:
    role_ids = set()
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            role_ids.add(int(part))
        except ValueError:
            raise ConfigError(f"AUTHORIZED_ROLE_IDS contains a non-numeric role ID: {part!r}") from None
    return frozenset(role_ids)


@dataclass(frozen=True)
class Settings:
    token: str
    gold_channel_id: int
    damage_category_id: int
    review_channel_id: int
    authorized_role_ids: FrozenSet[int]
    ledger_url: str
    port: int = 3000
    approval_emoji: str = "✅"
    command_prefix: str = "v."

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        if env is None:
            load_dotenv()
            env = os.environ

        role_ids = parse_role_ids(_require(env, "AUTHORIZED_ROLE_IDS"))
        if not role_ids:
            raise ConfigError("AUTHORIZED_ROLE_IDS must list at least one role ID")

        port_raw = (env.get("PORT") or DEFAULTS["PORT"]).strip()
        try:
            port = int(port_raw)
        except ValueError:
            raise ConfigError(f"PORT must be an integer, got {port_raw!r}") from None

        return cls(
            token=_require(env, "TOKEN"),
            gold_channel_id=_require_id(env, "GOLD_CHANNEL_ID"),
            damage_category_id=_require_id(env, "DAMAGE_CATEGORY_ID"),
            review_channel_id=_require_id(env, "REVIEW_CHANNEL_ID"),
            authorized_role_ids=role_ids,
            ledger_url=_require(env, "LEDGER_WEBHOOK_URL"),
            port=port,
            approval_emoji=(env.get("APPROVAL_EMOJI") or DEFAULTS["APPROVAL_EMOJI"]).strip(),
            command_prefix=(env.get("COMMAND_PREFIX") or DEFAULTS["COMMAND_PREFIX"]).strip(),
        )

    def is_authorized(self, role_ids) -> bool:
        return not self.authorized_role_ids.isdisjoint(role_ids)
