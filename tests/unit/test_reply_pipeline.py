# -*- coding: utf-8 -*-
"""
回覆狀態機 + 組裝單元測試

測試範圍：
- process_backend_reply() 各分支（教學、餘額、分類列表、總結、記帳、純文字）
- assemble_messages() 順序、5 則上限、Quick Reply 只在最後一則
"""

from datetime import date
from unittest.mock import Mock

import pytest

from ledgerbot.config import CONY_SENDER, QUICK_REPLY_ITEMS
from ledgerbot.line.assembler import (
    EMPTY_REPLY_TEXT,
    EXPENSE_ALT_TEXT,
    INCOME_ALT_TEXT,
    assemble_messages,
    card_alt_text,
)
from ledgerbot.line.reply_processor import SUMMARY_FAILED_TEXT, process_backend_reply
from ledgerbot.line.segments import TRANSCRIPTION_ALT_TEXT
from ledgerbot.line.tutorial import TUTORIAL_FALLBACK_TEXT
from ledgerbot.line.types import ProcessedReply, ReplyKind
from ledgerbot.parser.types import TransactionType
from ledgerbot.summary.types import DateRange
from tests.test_utils import flex_texts


TODAY = date(2024, 1, 17)

SCENARIO_REPLY = (
    '以下是您本次的紀錄：\n```json\n'
    '{"category":"餐飲","amount":120,"memo":"午餐","user_id":"u1","datetime":"2024-01-01"}\n'
    '```\n[{"id":42}],[{"type": "expense"}]'
)


@pytest.fixture
def store():
    mock_store = Mock()
    mock_store.query_transactions.return_value = [
        {"type": "income", "amount": 10000, "category": "薪水"},
        {"type": "expense", "amount": 4000, "category": "餐飲"},
    ]
    mock_store.query_categories.return_value = {"expense": ["餐飲", "交通"], "income": ["薪水"]}
    return mock_store


class TestProcessBackendReply:

    @pytest.mark.parametrize("keyword", ["教學文檔", "旺來怎麼用", "說明"])
    def test_tutorial(self, keyword):
        processed = process_backend_reply(keyword, "u1")

        assert processed.kind == ReplyKind.TUTORIAL
        assert len(processed.cards) == 2
        assert processed.text == ""

    def test_tutorial_load_failure(self, mocker):
        mocker.patch("ledgerbot.line.reply_processor.load_tutorial_cards", return_value=None)
        processed = process_backend_reply("說明", "u1")

        assert processed.cards == []
        assert processed.text == TUTORIAL_FALLBACK_TEXT

    def test_exact_balance_keyword(self, store):
        processed = process_backend_reply("餘額", "u1", store, today=TODAY)

        assert processed.kind == ReplyKind.BALANCE_SUMMARY
        assert processed.text == ""
        assert len(processed.cards) == 1
        texts = flex_texts(processed.cards[0])
        assert "$ 6,000" in texts
        assert "月收入" in texts
        store.query_transactions.assert_called_once_with("u1", DateRange(date(2024, 1, 1), TODAY))

    def test_reply_mentioning_balance(self, store):
        processed = process_backend_reply("您目前的餘額如下", "u1", store, today=TODAY)

        assert processed.kind == ReplyKind.BALANCE_SUMMARY
        assert processed.text == "您目前的餘額如下"

    def test_balance_with_summary_word_is_not_balance_card(self, store):
        processed = process_backend_reply("本月總結：餘額充足", "u1", store, today=TODAY)

        assert processed.kind == ReplyKind.TEXT
        assert processed.cards == []
        store.query_transactions.assert_not_called()

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_reply(self, text):
        processed = process_backend_reply(text, "u1")
        assert processed == ProcessedReply()

    def test_category_list(self, store):
        processed = process_backend_reply("分類列表", "u1", store)

        assert processed.kind == ReplyKind.CATEGORY_LIST
        assert processed.cards[0]["type"] == "carousel"
        store.query_categories.assert_called_once_with("u1")

    def test_category_list_store_error(self):
        broken = Mock()
        broken.query_categories.side_effect = RuntimeError("down")

        processed = process_backend_reply("分類列表", "u1", broken)

        assert processed.kind == ReplyKind.CATEGORY_LIST
        assert processed.cards[0]["type"] == "bubble"

    def test_summary_keyword(self, store):
        processed = process_backend_reply("月支出總結", "u1", store, today=TODAY)

        assert processed.kind == ReplyKind.SUMMARY
        assert processed.text == ""
        assert len(processed.cards) == 1
        assert processed.caption == "以下是本月 2024/01/01 - 2024/01/17的分析"
        assert "月支出總結" in flex_texts(processed.cards[0])

    def test_summary_render_failure(self, store, mocker):
        mocker.patch("ledgerbot.line.reply_processor.render_summary", return_value={})
        processed = process_backend_reply("週收入總結", "u1", store, today=TODAY)

        assert processed.cards == []
        assert processed.text == SUMMARY_FAILED_TEXT

    def test_transaction_reply(self):
        processed = process_backend_reply(SCENARIO_REPLY, "u1", today=TODAY)

        assert processed.kind == ReplyKind.RECORD
        assert len(processed.cards) == 1
        assert processed.transaction_type == TransactionType.EXPENSE
        assert "```" not in processed.text
        assert "餐飲" in flex_texts(processed.cards[0])

    def test_plain_text_reply(self):
        processed = process_backend_reply("你好！今天想記什麼帳呢？", "u1")

        assert processed.kind == ReplyKind.TEXT
        assert processed.cards == []
        assert processed.text == "你好！今天想記什麼帳呢？"

    def test_unexpected_error_returns_text(self, mocker):
        mocker.patch("ledgerbot.line.reply_processor.extract", side_effect=RuntimeError("boom"))
        processed = process_backend_reply("早餐 60", "u1")

        assert processed.cards == []
        assert processed.text == "早餐 60"


class TestAssembleMessages:

    def test_scenario_record_then_text(self):
        messages = assemble_messages(process_backend_reply(SCENARIO_REPLY, "u1", today=TODAY))

        assert [m["type"] for m in messages] == ["flex", "text"]
        assert messages[0]["altText"] == EXPENSE_ALT_TEXT
        assert "quickReply" not in messages[0]
        assert messages[1]["quickReply"]["items"] == QUICK_REPLY_ITEMS

    def test_income_alt_text(self):
        reply = '```json\n{"category":"薪水","amount":45000,"type":"income"}\n```'
        messages = assemble_messages(process_backend_reply(reply, "u1"))
        assert messages[0]["altText"] == INCOME_ALT_TEXT

    def test_never_more_than_five(self):
        records = ",".join(f'{{"category":"C{i}","amount":{i + 1}}}' for i in range(7))
        reply = f"記錄完成\n```json\n[{records}]\n```"
        processed = process_backend_reply(reply, "u1")

        messages = assemble_messages(processed)

        assert len(processed.cards) == 7
        assert len(messages) == 5
        assert all(m["type"] == "flex" for m in messages)
        assert [("quickReply" in m) for m in messages] == [False, False, False, False, True]

    def test_quick_reply_only_on_last(self):
        processed = ProcessedReply(kind=ReplyKind.RECORD, text="好的", cards=[
            {"type": "bubble", "body": {"type": "box", "layout": "vertical", "contents": []}},
        ] * 3)
        messages = assemble_messages(processed)

        assert len(messages) == 4
        assert sum("quickReply" in m for m in messages) == 1
        assert "quickReply" in messages[-1]

    def test_quick_reply_items_are_copied(self):
        messages = assemble_messages(ProcessedReply(text="hi"))
        messages[-1]["quickReply"]["items"].clear()
        assert len(QUICK_REPLY_ITEMS) == 3

    def test_transcription_first(self):
        processed = process_backend_reply(SCENARIO_REPLY, "u1")
        messages = assemble_messages(processed, transcribed_text="午餐 120")

        assert messages[0]["altText"] == TRANSCRIPTION_ALT_TEXT
        assert flex_texts(messages[0]["contents"]) == ["：午餐 120"]
        assert [m["type"] for m in messages] == ["flex", "flex", "text"]

    def test_empty_reply_gets_placeholder(self):
        messages = assemble_messages(ProcessedReply())
        assert messages == [{"type": "text", "text": EMPTY_REPLY_TEXT, "quickReply": {"items": QUICK_REPLY_ITEMS}}]

    def test_cony_sender(self):
        messages = assemble_messages(ProcessedReply(text="嗨，我是 Cony"), is_cony=True)
        assert messages[0]["sender"] == CONY_SENDER

    def test_tutorial_alt_texts(self):
        messages = assemble_messages(process_backend_reply("說明", "u1"))
        assert [m["altText"] for m in messages] == ["🍍旺來新手教學 (上)", "🍍旺來新手教學 (下)"]

    def test_malformed_card_is_kept(self):
        processed = ProcessedReply(kind=ReplyKind.RECORD, cards=[{"foo": "bar"}],
                                   transaction_type=TransactionType.INCOME)
        messages = assemble_messages(processed)

        assert len(messages) == 1
        assert messages[0]["contents"] == {"foo": "bar"}
        assert messages[0]["altText"] == INCOME_ALT_TEXT

    @pytest.mark.parametrize("kind, expected", [
        (ReplyKind.SUMMARY, "📊 收支總結"),
        (ReplyKind.BALANCE_SUMMARY, "💰 餘額"),
        (ReplyKind.CATEGORY_LIST, "📂 分類列表"),
    ])
    def test_fixed_alt_texts(self, kind, expected):
        assert card_alt_text(ProcessedReply(kind=kind), 0, {}) == expected
