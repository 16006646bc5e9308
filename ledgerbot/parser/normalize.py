# -*- coding: utf-8 -*-
"""
Record Normalizer

將抽取出的原始 JSON 物件補上預設值，轉為 TransactionRecord。
純函式：不做任何 I/O。
"""

from datetime import date, datetime
from typing import Any, Mapping, Optional

from ledgerbot.config import TIMEZONE
from ledgerbot.parser.types import (
    DEFAULT_CATEGORY,
    DEFAULT_MEMO,
    RecordId,
    TransactionRecord,
    TransactionType,
)

_KNOWN_FIELDS = ("category", "amount", "memo", "datetime", "type", "is_fixed", "record_id", "user_id")


def _coerce_is_fixed(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    if value is None:
        return False
    return bool(value)


def _text_or_default(value: Any, default: str) -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def today_str(today: Optional[date] = None) -> str:
    """今天日期（台北時間，YYYY-MM-DD）"""
    if today is None:
        today = datetime.now(TIMEZONE).date()
    return today.strftime("%Y-%m-%d")


def normalize_record(
    data: Mapping[str, Any],
    *,
    record_id: RecordId = "",
    transaction_type: TransactionType = TransactionType.EXPENSE,
    today: Optional[date] = None,
) -> TransactionRecord:
    """
    補齊記錄預設值

    Args:
        data: 抽取出的 JSON 物件
        record_id: 由 ID 標記指派的記錄 ID（data 內已有 record_id 時不覆蓋空值以外的值）
        transaction_type: 全域交易類型；記錄本身的 type 欄位優先
        today: 預設日期（測試用）

    Returns:
        TransactionRecord

    Examples:
        >>> record = normalize_record({"category": "餐飲", "amount": 120})
        >>> record.memo, record.is_fixed, record.type.value
        ('無備註', False, 'expense')
    """
    own_type = TransactionType.from_value(data.get("type"))

    # is_fixed 僅在欄位不存在時才套用預設值（明確的 false 保留原樣）
    if "is_fixed" in data:
        is_fixed = _coerce_is_fixed(data["is_fixed"])
    else:
        is_fixed = False

    assigned_id = record_id
    if assigned_id in (None, "") and data.get("record_id") not in (None, ""):
        assigned_id = data["record_id"]

    user_id = data.get("user_id")

    return TransactionRecord(
        category=_text_or_default(data.get("category"), DEFAULT_CATEGORY),
        amount=data.get("amount"),
        memo=_text_or_default(data.get("memo"), DEFAULT_MEMO),
        datetime=_text_or_default(data.get("datetime"), today_str(today)),
        type=own_type or transaction_type,
        is_fixed=is_fixed,
        record_id=assigned_id if assigned_id is not None else "",
        user_id=str(user_id) if user_id is not None else None,
        extra={k: v for k, v in data.items() if k not in _KNOWN_FIELDS},
    )
