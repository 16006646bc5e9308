# -*- coding: utf-8 -*-
"""
Reply Assembler

將 ProcessedReply 組成 LINE messages：
    語音辨識泡泡 → 卡片 → 文字
最多 5 則，最後一則附上 Quick Reply。
"""

import copy
import logging
from typing import Optional

from ledgerbot.config import CONY_SENDER, MAX_MESSAGES_PER_REQUEST, QUICK_REPLY_ITEMS
from ledgerbot.line.segments import FlexSegment, ReplySegment, TextSegment, TranscriptionSegment
from ledgerbot.line.types import ProcessedReply, ReplyKind
from ledgerbot.parser.types import TransactionType

logger = logging.getLogger(__name__)

EMPTY_REPLY_TEXT = "處理完成"
DEFAULT_RECORD_ALT_TEXT = "已為您記帳！"
INCOME_ALT_TEXT = "已為您記錄收入！"
EXPENSE_ALT_TEXT = "已為您記錄支出！"

_FIXED_ALT_TEXTS = {
    ReplyKind.SUMMARY: "📊 收支總結",
    ReplyKind.BALANCE_SUMMARY: "💰 餘額",
    ReplyKind.CATEGORY_LIST: "📂 分類列表",
}


def _pill_text(card: dict) -> Optional[str]:
    """記錄卡片的類型膠囊文字（body.contents[0].contents[1].contents[0].text）"""
    try:
        value = card["body"]["contents"][0]["contents"][1]["contents"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return value if isinstance(value, str) else None


def card_alt_text(processed: ProcessedReply, index: int, card: dict) -> str:
    """
    決定卡片 altText

    Examples:
        >>> card_alt_text(ProcessedReply(kind=ReplyKind.TUTORIAL), 1, {})
        '🍍旺來新手教學 (下)'
    """
    if processed.kind == ReplyKind.TUTORIAL:
        return "🍍旺來新手教學 (上)" if index == 0 else "🍍旺來新手教學 (下)"
    if processed.kind in _FIXED_ALT_TEXTS:
        return _FIXED_ALT_TEXTS[processed.kind]

    pill_text = _pill_text(card)
    if pill_text is not None:
        if "收入" in pill_text:
            return INCOME_ALT_TEXT
        if "支出" in pill_text:
            return EXPENSE_ALT_TEXT
        return DEFAULT_RECORD_ALT_TEXT

    # 卡片結構無法判斷時使用整則回覆的交易類型
    if processed.transaction_type == TransactionType.INCOME:
        return INCOME_ALT_TEXT
    if processed.transaction_type == TransactionType.EXPENSE:
        return EXPENSE_ALT_TEXT
    return DEFAULT_RECORD_ALT_TEXT


def build_segments(
    processed: ProcessedReply,
    *,
    transcribed_text: Optional[str] = None,
    is_cony: bool = False,
) -> list[ReplySegment]:
    """依固定順序組出 segments（尚未截斷）"""
    segments: list[ReplySegment] = []

    if transcribed_text and transcribed_text.strip():
        segments.append(TranscriptionSegment(transcript=transcribed_text.strip()))

    for index, card in enumerate(processed.cards):
        segments.append(FlexSegment(contents=card, alt_text=card_alt_text(processed, index, card)))

    if processed.text and processed.text.strip():
        segments.append(TextSegment(text=processed.text, sender=CONY_SENDER if is_cony else None))

    if not segments:
        segments.append(TextSegment(text=EMPTY_REPLY_TEXT))

    return segments


def assemble_messages(
    processed: ProcessedReply,
    *,
    transcribed_text: Optional[str] = None,
    is_cony: bool = False,
    limit: int = MAX_MESSAGES_PER_REQUEST,
) -> list[dict]:
    """
    組出要送給 LINE 的 messages

    Args:
        processed: 回覆狀態機的輸出
        transcribed_text: 語音辨識結果（顯示在最前面）
        is_cony: 文字訊息以 Cony 身分送出
        limit: 單次回覆上限

    Returns:
        list[dict]：長度介於 1 與 limit 之間，只有最後一則帶 quickReply
    """
    try:
        segments = build_segments(processed, transcribed_text=transcribed_text, is_cony=is_cony)
        if len(segments) > limit:
            logger.warning(f"Reply has {len(segments)} segments, truncating to {limit}")
            segments = segments[:limit]

        for segment in segments:
            if isinstance(segment, FlexSegment) and not segment.is_well_formed():
                logger.warning(f"Flex segment is not well formed: altText={segment.alt_text!r}")

        messages = [segment.to_message() for segment in segments]
    except Exception as e:
        logger.exception(f"Error assembling reply messages: {e}")
        messages = [TextSegment(text=(processed.text or "").strip() or EMPTY_REPLY_TEXT).to_message()]

    messages[-1]["quickReply"] = {"items": copy.deepcopy(QUICK_REPLY_ITEMS)}
    logger.info(f"Assembled {len(messages)} message(s): {[m.get('type') for m in messages]}")
    return messages
