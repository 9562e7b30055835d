"""
VerificationCog: the orchestration layer for the report verification relay.

Responsibilities:
- Ingestion (on_message):
    - Gold channel: "gold: <player> <value>" -> relay message, original deleted
    - Damage category threads: screenshot + value -> relay message, original kept
    - Relay message gets the approval emoji and is tracked in the ledger

- Approval (on_raw_reaction_add):
    - Only the approval emoji, only in the review channel, never from bots
    - Reviewer must hold one of AUTHORIZED_ROLE_IDS
    - Pending record is sent to the ledger service once
        - Success: record dropped, relay message struck through + reactions cleared
        - Failure: record stays pending, warning posted in the review channel

- Reviewer commands (prefix from COMMAND_PREFIX, default v.):
    - v.verify
    - v.verify pending

Notes:
- Uses bot.session (aiohttp) and bot.settings from RelayBot.
- Each listener catches and logs its own errors; a bad event never takes the
  bot down.
"""

from __future__ import annotations

import logging
from typing import Optional

import discord
from discord.ext import commands

from cogs_verification.formatting import (
    format_delivery_warning, format_pending_list,
    format_relay_message, format_verified_message,
)
from cogs_verification.ledger import VerificationLedger
from cogs_verification.models import Record, RecordKind
from cogs_verification.parsing import classify_message
from cogs_verification.settings import Settings
from cogs_verification.sheets import DeliveryError, LedgerServiceClient


logger = logging.getLogger(__name__)


class VerificationCog(commands.Cog):
    """
    Player report verification:
    - relay reports into the review channel
    - approval by reaction
    - one-shot delivery to the ledger service
    """

    def __init__(self, bot: commands.Bot, *, settings: Settings,
                 ledger: VerificationLedger, client: LedgerServiceClient):
        self.bot = bot
        self.settings = settings
        self.ledger = ledger
        self.client = client

    @property
    def bot_user_id(self) -> Optional[int]:
        user = self.bot.user
        return user.id if user else None

    async def review_channel(self):
        ch = self.bot.get_channel(self.settings.review_channel_id)
        if ch is None:
            ch = await self.bot.fetch_channel(self.settings.review_channel_id)
        return ch

    # -----------------------------
    # Ingestion
    # -----------------------------

    async def ingest(self, msg: discord.Message) -> Optional[int]:
        """
        Relays a report message. Returns the relay message ID, or None if the
        message is not a report.
        """
        record = classify_message(
            msg,
            gold_channel_id=self.settings.gold_channel_id,
            damage_category_id=self.settings.damage_category_id,
            bot_user_id=self.bot_user_id,
        )
        if record is None:
            return None

        review = await self.review_channel()
        relay = await review.send(
            format_relay_message(record), allowed_mentions=discord.AllowedMentions.none()
        )
        self.ledger.put(relay.id, record)
        logger.info("Queued %s report for %s (%s) as relay message %s",
                    record.kind.value, record.subject, record.amount, relay.id)

        try:
            await relay.add_reaction(self.settings.approval_emoji)
        except discord.HTTPException as e:
            logger.error("Failed to add approval reaction to relay message %s: %s", relay.id, e)

        # gold reports now live only in the review channel
        if record.kind is RecordKind.GOLD:
            try:
                await msg.delete()
            except discord.HTTPException as e:
                logger.error("Failed to delete gold report %s: %s", msg.id, e)

        return relay.id

    @commands.Cog.listener()
    async def on_message(self, msg: discord.Message):
        try:
            await self.ingest(msg)
        except Exception:
            logger.exception("Error while relaying message %s", getattr(msg, "id", None))

    # -----------------------------
    # Approval
    # -----------------------------

    async def resolve_member(self, payload: discord.RawReactionActionEvent):
        if payload.member is not None:
            return payload.member

        guild = self.bot.get_guild(payload.guild_id) if payload.guild_id else None
        if guild is None:
            logger.error("Reaction by %s outside a known guild; ignoring", payload.user_id)
            return None

        try:
            return await guild.fetch_member(payload.user_id)
        except discord.HTTPException as e:
            logger.error("Could not fetch member %s: %s", payload.user_id, e)
            return None

    async def approve(self, payload: discord.RawReactionActionEvent) -> bool:
        """
        Handles an approval reaction. Returns True if a record was delivered.
        """
        if payload.emoji.name != self.settings.approval_emoji:
            return False
        if payload.user_id == self.bot_user_id:
            return False
        if payload.channel_id != self.settings.review_channel_id:
            return False
        if payload.message_id not in self.ledger:
            return False  # already verified or never pending

        member = await self.resolve_member(payload)
        if member is None or member.bot:
            return False

        if not self.settings.is_authorized(r.id for r in member.roles):
            logger.warning("%s reacted to %s but is not an authorized reviewer; ignoring",
                           member, payload.message_id)
            return False

        record = self.ledger.claim(payload.message_id)
        if record is None:
            if self.ledger.is_inflight(payload.message_id):
                logger.info("Relay message %s is already being delivered; ignoring approval by %s",
                            payload.message_id, member)
            return False

        verifier = member.display_name
        logger.info("Sending verified %s record for %s to the ledger service...",
                    record.kind.value, record.subject)

        try:
            result = await self.client.deliver(record, verifier)
        except DeliveryError as e:
            self.ledger.release(payload.message_id)
            logger.warning("Ledger service rejected %s (%s): %s", record.subject, record.amount, e)
            await self.send_warning(record, str(e))
            return False
        except Exception:
            self.ledger.release(payload.message_id)
            raise

        self.ledger.remove(payload.message_id)
        logger.info("Ledger service accepted %s (%s), verified by %s: %s",
                    record.subject, record.amount, verifier, result)

        await self.mark_verified(payload.message_id, verifier)
        return True

    async def mark_verified(self, relay_message_id: int, verifier: str) -> None:
        try:
            review = await self.review_channel()
            relay = await review.fetch_message(relay_message_id)
        except discord.HTTPException as e:
            logger.error("Could not fetch relay message %s: %s", relay_message_id, e)
            return

        try:
            await relay.edit(
                content=format_verified_message(relay.content, verifier),
                allowed_mentions=discord.AllowedMentions.none(),
            )
        except discord.HTTPException as e:
            logger.error("Failed to mark relay message %s as verified: %s", relay_message_id, e)

        try:
            await relay.clear_reactions()
        except discord.HTTPException as e:
            logger.error("Failed to clear reactions on relay message %s: %s", relay_message_id, e)

    async def send_warning(self, record: Record, reason: str) -> None:
        try:
            review = await self.review_channel()
            await review.send(
                format_delivery_warning(record, reason), allowed_mentions=discord.AllowedMentions.none()
            )
        except discord.HTTPException as e:
            logger.error("Failed to post delivery warning for %s: %s", record.subject, e)

    @commands.Cog.listener()
    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent):
        try:
            await self.approve(payload)
        except Exception:
            logger.exception("Error while handling reaction on message %s", payload.message_id)

    # -----------------------------
    # Commands
    # -----------------------------

    async def cog_check(self, ctx: commands.Context) -> bool:
        if ctx.guild is None:
            return False
        if ctx.author.guild_permissions.manage_guild:
            return True
        return self.settings.is_authorized(r.id for r in ctx.author.roles)

    @commands.group(name="verify", invoke_without_command=True)
    async def verify_group(self, ctx: commands.Context):
        prefix = self.settings.command_prefix
        await ctx.send(
            "Commands:\n"
            f"- `{prefix}verify pending`\n"
            f"\nCurrent:\n"
            f"- Gold channel: <#{self.settings.gold_channel_id}>\n"
            f"- Damage category: {self.settings.damage_category_id}\n"
            f"- Review channel: <#{self.settings.review_channel_id}>\n"
            f"- Approval emoji: {self.settings.approval_emoji}\n"
            f"- Pending records: {len(self.ledger)}"
        )

    @verify_group.command(name="pending")
    async def pending(self, ctx: commands.Context):
        await ctx.send(format_pending_list(self.ledger.entries()))


async def setup(bot: commands.Bot):
    settings = bot.settings
    await bot.add_cog(VerificationCog(
        bot,
        settings=settings,
        ledger=VerificationLedger(),
        client=LedgerServiceClient(bot.session, settings.ledger_url),
    ))
