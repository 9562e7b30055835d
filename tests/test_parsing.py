from datetime import datetime, timezone
from types import SimpleNamespace

from cogs_verification.models import RecordKind
from cogs_verification.parsing import (
    classify_message, parse_damage_amount, parse_gold_report, to_epoch_ms,
)


GOLD_CHANNEL = 100
DAMAGE_CATEGORY = 200
BOT_ID = 1
CREATED = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def gold_msg(content, author_bot=False, author_id=42, channel_id=GOLD_CHANNEL):
    return SimpleNamespace(
        id=10,
        author=SimpleNamespace(id=author_id, bot=author_bot),
        channel=SimpleNamespace(id=channel_id, category_id=None),
        content=content,
        attachments=[],
        created_at=CREATED,
    )


def damage_msg(content, attachments=1, title="Bob", category_id=DAMAGE_CATEGORY):
    return SimpleNamespace(
        id=11,
        author=SimpleNamespace(id=42, bot=False),
        channel=SimpleNamespace(id=700, parent_id=250, category_id=category_id, name=title),
        content=content,
        attachments=[SimpleNamespace(url=f"https://cdn.test/shot{i}.png") for i in range(attachments)],
        created_at=CREATED,
    )


def classify(msg):
    return classify_message(msg, GOLD_CHANNEL, DAMAGE_CATEGORY, bot_user_id=BOT_ID)


class TestGoldReports:
    def test_basic_report(self):
        assert parse_gold_report("gold: X 123") == ("X", "123")

    def test_label_is_case_insensitive_and_trimmed(self):
        assert parse_gold_report("  GoLd :Ryu   500 thanks") == ("Ryu", "500")

    def test_no_colon(self):
        assert parse_gold_report("gold 123") is None

    def test_wrong_label(self):
        assert parse_gold_report("notgold: X 123") is None
        assert parse_gold_report("damage: X 123") is None

    def test_missing_value(self):
        assert parse_gold_report("gold: X") is None
        assert parse_gold_report("gold:") is None

    def test_record_from_gold_channel(self):
        record = classify(gold_msg("gold: Alice 500"))
        assert record.kind is RecordKind.GOLD
        assert record.subject == "Alice"
        assert record.amount == "500"
        assert record.submitted_at_ms == to_epoch_ms(CREATED)
        assert record.evidence_urls == ()

    def test_amount_is_kept_verbatim(self):
        assert classify(gold_msg("gold: Alice 1,500k")).amount == "1,500k"

    def test_other_channel_ignored(self):
        assert classify(gold_msg("gold: Alice 500", channel_id=999)) is None

    def test_bot_messages_ignored(self):
        assert classify(gold_msg("gold: Alice 500", author_id=BOT_ID)) is None
        assert classify(gold_msg("gold: Alice 500", author_bot=True)) is None


class TestDamageReports:
    def test_amount_normalization(self):
        assert parse_damage_amount("103T") == "103T"
        assert parse_damage_amount("50T") == "50T"
        assert parse_damage_amount("50 T extra") == "50T"
        assert parse_damage_amount("1.2 Qa") == "1.2Qa"
        assert parse_damage_amount("big hit") == "big"
        assert parse_damage_amount("   ") == ""

    def test_plain_words_are_not_suffixes(self):
        assert parse_damage_amount("150 in total") == "150"
        assert parse_damage_amount("80 on boss") == "80"
        assert parse_damage_amount("12 at wave 3") == "12"
        assert parse_damage_amount("7 K") == "7K"
        assert parse_damage_amount("3 sx") == "3sx"

    def test_attachment_required(self):
        assert classify(damage_msg("103T", attachments=0)) is None
        assert classify(damage_msg("", attachments=0)) is None

    def test_record_from_thread(self):
        record = classify(damage_msg("50 T extra", attachments=2))
        assert record.kind is RecordKind.DAMAGE
        assert record.subject == "Bob"
        assert record.amount == "50T"
        assert record.evidence_urls == ("https://cdn.test/shot0.png", "https://cdn.test/shot1.png")
        assert record.submitted_at_ms == to_epoch_ms(CREATED)

    def test_empty_caption_ignored(self):
        assert classify(damage_msg("")) is None

    def test_empty_title_ignored(self):
        assert classify(damage_msg("103T", title="  ")) is None

    def test_thread_in_other_category_ignored(self):
        assert classify(damage_msg("103T", category_id=999)) is None

    def test_plain_channel_in_category_ignored(self):
        msg = damage_msg("103T")
        msg.channel = SimpleNamespace(id=701, category_id=DAMAGE_CATEGORY, name="general")
        assert classify(msg) is None
