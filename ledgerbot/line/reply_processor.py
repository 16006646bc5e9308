# -*- coding: utf-8 -*-
"""
Backend Reply Processor

判斷 Dify 回覆屬於哪一種回覆，並產生對應的卡片與文字：

1. 教學關鍵字（教學文檔 / 旺來怎麼用 / 說明）→ 兩張教學卡片
2. 「餘額」→ 本月結餘卡片
3. 空白回覆 → 空結果
4. 含「餘額」但不含「總結」→ 本月結餘卡片 + 清理後文字
5. 「分類列表」→ 分類卡片
6. 日/週/月 × 支出/收入 總結 → 收支總結卡片
7. 其他 → 抽取記帳記錄，每筆一張卡片 + 清理後文字
"""

import logging
from datetime import date
from typing import Any, Optional

from ledgerbot.line.category_card import render_category_list
from ledgerbot.line.record_card import render_record
from ledgerbot.line.summary_card import render_balance_summary, render_summary
from ledgerbot.line.tutorial import TUTORIAL_FALLBACK_TEXT, load_tutorial_cards
from ledgerbot.line.types import ProcessedReply, ReplyKind
from ledgerbot.parser import clean_message_text, extract
from ledgerbot.summary import date_range_caption, extract_summary_data, period_from_keyword

logger = logging.getLogger(__name__)

TUTORIAL_KEYWORDS = ("教學文檔", "旺來怎麼用", "說明")
BALANCE_KEYWORD = "餘額"
BALANCE_REPORT_KEYWORD = "月結餘"
CATEGORY_LIST_KEYWORD = "分類列表"
SUMMARY_KEYWORDS = (
    "日支出總結",
    "日收入總結",
    "週支出總結",
    "週收入總結",
    "月支出總結",
    "月收入總結",
)
SUMMARY_FAILED_TEXT = "抱歉，無法生成摘要報告。"


def _tutorial_reply() -> ProcessedReply:
    cards = load_tutorial_cards()
    if not cards:
        return ProcessedReply(kind=ReplyKind.TUTORIAL, text=TUTORIAL_FALLBACK_TEXT)
    return ProcessedReply(kind=ReplyKind.TUTORIAL, cards=cards)


def _balance_reply(user_id: str, store: Any, text: str, today: Optional[date]) -> ProcessedReply:
    dataset = extract_summary_data(BALANCE_REPORT_KEYWORD, BALANCE_REPORT_KEYWORD, user_id, store, today=today)
    return ProcessedReply(
        kind=ReplyKind.BALANCE_SUMMARY,
        text=text,
        cards=[render_balance_summary(dataset)],
    )


def _category_list_reply(user_id: str, store: Any) -> ProcessedReply:
    categories = None
    if store is not None:
        try:
            categories = store.query_categories(user_id)
        except Exception as e:
            logger.error(f"Error querying categories for user {user_id}: {e}")
    return ProcessedReply(kind=ReplyKind.CATEGORY_LIST, cards=[render_category_list(categories)])


def _summary_reply(keyword: str, user_id: str, store: Any, today: Optional[date]) -> ProcessedReply:
    dataset = extract_summary_data(keyword, keyword, user_id, store, today=today)
    card = render_summary(dataset)
    if not card:
        return ProcessedReply(kind=ReplyKind.TEXT, text=SUMMARY_FAILED_TEXT)

    return ProcessedReply(
        kind=ReplyKind.SUMMARY,
        cards=[card],
        caption=date_range_caption(period_from_keyword(keyword), today),
    )


def _transaction_reply(text: str, today: Optional[date]) -> ProcessedReply:
    result = extract(text, today=today)
    cards = [render_record(record) for record in result.records]
    return ProcessedReply(
        kind=ReplyKind.RECORD if cards else ReplyKind.TEXT,
        text=clean_message_text(text),
        cards=cards,
        transaction_type=result.transaction_type,
    )


def process_backend_reply(
    text: Optional[str],
    user_id: str,
    store: Any = None,
    *,
    today: Optional[date] = None,
) -> ProcessedReply:
    """
    處理 Dify 回覆

    Args:
        text: Dify 回覆原文
        user_id: LINE 使用者 ID（報表查詢用）
        store: 資料來源（query_transactions / query_categories）
        today: 今天日期（測試用）

    Returns:
        ProcessedReply：不會拋出例外
    """
    text = text or ""
    stripped = text.strip()
    logger.info(f"Processing backend reply for user {user_id} (length={len(text)})")

    try:
        if stripped in TUTORIAL_KEYWORDS:
            logger.info("Tutorial document request detected")
            return _tutorial_reply()

        if stripped == BALANCE_KEYWORD:
            logger.info("餘額關鍵詞檢測到，建立本月結餘卡片")
            return _balance_reply(user_id, store, "", today)

        if not stripped:
            logger.info("Empty reply received")
            return ProcessedReply()

        if BALANCE_KEYWORD in text and "總結" not in text:
            logger.info("回覆中包含「餘額」，建立本月結餘卡片")
            return _balance_reply(user_id, store, clean_message_text(text), today)

        if stripped == CATEGORY_LIST_KEYWORD:
            return _category_list_reply(user_id, store)

        if stripped in SUMMARY_KEYWORDS:
            logger.info(f"Summary keyword detected: {stripped}")
            return _summary_reply(stripped, user_id, store, today)

        return _transaction_reply(text, today)

    except Exception as e:
        logger.exception(f"Error processing backend reply: {e}")
        return ProcessedReply(text=clean_message_text(text) or text)
