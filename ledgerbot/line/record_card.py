# -*- coding: utf-8 -*-
"""
Transaction record card

單筆記錄的 Flex bubble：
- 第一列：分類 + 類型膠囊（支出 / 固定支出 / 收入 / 固定收入）
- 金額、備註、日期
- 設定 LIFF_ID 時附上「編輯」按鈕
"""

import logging
from typing import Any, Optional
from urllib.parse import quote

from ledgerbot import config
from ledgerbot.line import flex
from ledgerbot.parser.types import DEFAULT_CATEGORY, DEFAULT_MEMO, TransactionRecord

logger = logging.getLogger(__name__)


def format_amount(amount: Any) -> str:
    """
    Examples:
        >>> format_amount(1200)
        '$1,200'
        >>> format_amount(None)
        '$0'
    """
    if amount is None or amount == "":
        return "$0"
    if isinstance(amount, bool):
        return f"${amount}"
    if isinstance(amount, int):
        return f"${amount:,}"
    if isinstance(amount, float):
        return f"${amount:,.0f}" if amount.is_integer() else f"${amount:,.2f}"
    return f"${amount}"


def edit_record_url(liff_id: str, record: TransactionRecord) -> str:
    """LIFF 編輯頁連結（record_id 需 URL encode）"""
    record_id = quote(str(record.record_id), safe="") if record.record_id not in (None, "") else ""
    return f"https://liff.line.me/{liff_id}?recordId={record_id}&type={record.type.value}"


def _pill(record: TransactionRecord) -> dict:
    variant = record.variant
    return flex.box(
        "vertical",
        [flex.text(variant.label, size="xs", color="#FFFFFF", align="center", weight="bold")],
        flex=variant.pill_flex,
        backgroundColor=variant.color,
        cornerRadius="12px",
        paddingTop="2px",
        paddingBottom="2px",
        paddingStart=variant.padding,
        paddingEnd=variant.padding,
        justifyContent="center",
    )


def _detail_row(label: str, value: str) -> dict:
    return flex.box(
        "baseline",
        [
            flex.text(label, size="sm", color="#aaaaaa", flex=2),
            flex.text(value, size="sm", color="#555555", flex=5, wrap=True),
        ],
        spacing="sm",
    )


def render_record(record: TransactionRecord, *, liff_id: Optional[str] = None) -> dict:
    """
    產生記錄卡片（Flex bubble）

    Args:
        record: 已補齊預設值的記錄
        liff_id: LIFF App ID；未指定時使用設定值，兩者皆空則不顯示編輯按鈕

    Returns:
        dict: Flex bubble，任何錯誤都回傳簡化版卡片
    """
    liff_id = liff_id if liff_id is not None else config.LIFF_ID
    try:
        header = flex.box(
            "horizontal",
            [
                flex.text(record.category or DEFAULT_CATEGORY, size="lg", weight="bold", color="#333333",
                          flex=5, gravity="center", wrap=True),
                _pill(record),
            ],
            alignItems="center",
        )
        body = flex.box(
            "vertical",
            [
                header,
                flex.text(format_amount(record.amount), size="xxl", weight="bold", margin="md",
                          color=record.variant.color),
                flex.separator(),
                flex.box(
                    "vertical",
                    [
                        _detail_row("備註", record.memo or DEFAULT_MEMO),
                        _detail_row("日期", record.datetime),
                    ],
                    margin="md",
                    spacing="sm",
                ),
            ],
        )

        footer = None
        if liff_id:
            footer = flex.box(
                "vertical",
                [flex.uri_button("編輯", edit_record_url(liff_id, record), color=record.variant.color)],
            )
        return flex.bubble(body, footer=footer)

    except Exception as e:
        logger.error(f"Error creating record card: {e}")
        return render_fallback_record(record)


def render_fallback_record(record: Any) -> dict:
    """簡化版卡片：只有分類、金額、備註、日期四行文字"""
    category = getattr(record, "category", None) or DEFAULT_CATEGORY
    amount = getattr(record, "amount", None)
    memo = getattr(record, "memo", None) or DEFAULT_MEMO
    when = getattr(record, "datetime", None) or ""
    try:
        color = record.variant.color
    except (AttributeError, KeyError):
        # type / is_fixed 無法對應樣式
        color = "#1DB446"

    return flex.bubble(flex.box(
        "vertical",
        [
            flex.text(str(category), weight="bold", color=color, size="sm"),
            flex.text(f"${amount if amount not in (None, '') else 0}", size="xl", weight="bold", margin="md"),
            flex.text(str(memo), size="sm", color="#555555", wrap=True),
            flex.text(str(when), size="xs", color="#aaaaaa"),
        ],
    ))
