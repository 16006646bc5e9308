# -*- coding: utf-8 -*-
"""
Reply Text Cleaning

把 Dify 回覆中給機器讀的片段（JSON 區塊、ID 標記、空括號殘留）移除，
留下給使用者看的文字。交易類型標記 [{"type": "..."}] 保留不動。
"""

import re

# 依序套用；順序有意義（先移除整個程式碼區塊與 ID 標記，再處理零散的物件與括號）
_CLEANUP_PATTERNS = (
    re.compile(r"```(?:json)?\s*(\{[\s\S]*?\}|\[[\s\S]*?\])\s*```"),
    re.compile(r'\[\s*\{\s*"id"\s*:\s*\d+\s*\}(?:\s*,\s*\{\s*"id"\s*:\s*\d+\s*\})*\s*\](?:\s*,\s*)?'),
    re.compile(r'\[\s*\{\s*"id"\s*:\s*\d+\s*\}\s*\]\s*,'),
    # 任何 {...} 物件，但不可碰到 [{"type": "..."}] 標記（標記本身或跨過標記的片段）
    re.compile(r'\{(?!\s*"type"\s*:\s*"[^"]*"\s*\}\s*\])(?:(?!\[\s*\{\s*"type"\s*:)[\s\S])*?\}'),
    re.compile(r"\[\s*\]\s*(?:,\s*\[\s*\])?"),
    re.compile(r"\[\s*(?:,\s*)*\]"),
)
_WHITESPACE = re.compile(r"\s+")
_DANGLING_LEAD_IN = re.compile(r"以下是您本次的紀錄：\s*$")


def clean_message_text(message: str) -> str:
    """
    清理回覆文字

    Examples:
        >>> clean_message_text('已記錄\\n```json\\n{"category": "餐飲"}\\n```')
        '已記錄'
        >>> clean_message_text('以下是您本次的紀錄：\\n{"amount": 1}')
        ''
    """
    if not message:
        return ""

    cleaned = message
    for pattern in _CLEANUP_PATTERNS:
        cleaned = pattern.sub("", cleaned)

    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    cleaned = _DANGLING_LEAD_IN.sub("", cleaned)
    return cleaned.strip()
