# -*- coding: utf-8 -*-
"""
Reply Parser Module

此模組負責從 Dify 的自然語言回覆中抽取結構化記帳記錄。
回覆可能夾帶零到多筆 JSON 記錄、記錄 ID 標記與交易類型標記，
格式並不一致；抽取失敗不是錯誤，代表這是一則純文字回覆。

主要入口：
- extract(raw: str) -> ExtractionResult
- clean_message_text(message: str) -> str

Usage:
    from ledgerbot.parser import extract
    result = extract(reply_text)
    for record in result.records:
        ...
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ledgerbot.parser.clean_text import clean_message_text
from ledgerbot.parser.errors import ExtractionError, ExtractionErrorCode
from ledgerbot.parser.extract_markers import extract_record_ids, extract_transaction_type
from ledgerbot.parser.extract_records import STRATEGIES, StrategyMatch
from ledgerbot.parser.normalize import normalize_record
from ledgerbot.parser.types import RecordId, TransactionRecord, TransactionType

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    """抽取結果"""

    records: list[TransactionRecord] = field(default_factory=list)
    record_ids: list[RecordId] = field(default_factory=list)
    transaction_type: TransactionType = TransactionType.EXPENSE
    remaining_text: str = ""
    strategy: Optional[str] = None         # 勝出的策略名稱（無則為 None）


def assign_record_ids(record_ids: list[RecordId], count: int) -> list[RecordId]:
    """
    將 ID 標記分配給 count 筆記錄

    只有一個 ID 但有多筆記錄時，每筆都使用同一個 ID；
    其餘情況依位置對應，沒有對應 ID 的記錄給空字串。

    Examples:
        >>> assign_record_ids([7], 3)
        [7, 7, 7]
        >>> assign_record_ids([1, 2], 3)
        [1, 2, '']
    """
    if len(record_ids) == 1 and count > 1:
        return [record_ids[0]] * count
    return [record_ids[i] if i < len(record_ids) else "" for i in range(count)]


def _remove_fragments(text: str, match: StrategyMatch) -> str:
    remaining = text
    for fragment in match.fragments:
        remaining = remaining.replace(fragment, "", 1)
    return remaining.strip()


def extract(raw: str, *, today: Optional[date] = None) -> ExtractionResult:
    """
    從回覆文字抽取記帳記錄。

    Args:
        raw: Dify 回覆原文
        today: 預設日期（測試用）

    Returns:
        ExtractionResult: 任何輸入都會回傳結果，不會拋出例外
    """
    if not raw or not raw.strip():
        return ExtractionResult(remaining_text=raw or "")

    record_ids = extract_record_ids(raw)
    transaction_type = extract_transaction_type(raw)

    for name, strategy in STRATEGIES:
        try:
            match = strategy(raw)
        except ExtractionError as e:
            if e.code != ExtractionErrorCode.NO_MATCH:
                logger.warning(f"Strategy {name} failed: {e}")
            continue

        ids = assign_record_ids(record_ids, len(match.payloads))
        records = [
            normalize_record(payload, record_id=record_id, transaction_type=transaction_type, today=today)
            for payload, record_id in zip(match.payloads, ids)
        ]
        logger.info(f"Extracted {len(records)} record(s) using {name}")
        return ExtractionResult(
            records=records,
            record_ids=record_ids,
            transaction_type=transaction_type,
            remaining_text=_remove_fragments(raw, match),
            strategy=name,
        )

    logger.info("No record found, treating reply as plain text")
    return ExtractionResult(
        record_ids=record_ids,
        transaction_type=transaction_type,
        remaining_text=raw,
    )


# Export
__all__ = [
    "extract",
    "assign_record_ids",
    "clean_message_text",
    "ExtractionResult",
    "ExtractionError",
    "ExtractionErrorCode",
    "TransactionRecord",
    "TransactionType",
]
