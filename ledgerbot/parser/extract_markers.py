# -*- coding: utf-8 -*-
"""
Record ID / Transaction Type Marker Extraction

Dify 會在回覆尾端附上：
- 記錄 ID 標記：[{"id":493}, {"id":494}]
- 交易類型標記：[{"type": "expense"}]

兩者常以 [{"id":803}],[{"type": "expense"}] 的形式連在一起。
標記只被讀取，不會從文字中移除。
"""

import json
import logging
import re
from typing import Optional

from ledgerbot.parser.types import RecordId, TransactionType

logger = logging.getLogger(__name__)

_ID_ITEM = r'\{\s*"id"\s*:\s*\d+\s*\}'
_IDS_PATTERN = re.compile(rf'\[\s*({_ID_ITEM}(?:\s*,\s*{_ID_ITEM})*)\s*\](?:,\s*)?')
_TYPE_MARKER_PATTERN = re.compile(r'\[\s*\{\s*"type"\s*:\s*"([^"]+)"\s*\}\s*\]')
# 記錄 JSON 本身帶有的 type 欄位（沒有獨立標記時使用）
_JSON_TYPE_PATTERN = re.compile(r'"type"\s*:\s*"(income|expense)"')


def extract_record_ids(text: str) -> list[RecordId]:
    """
    抽取記錄 ID 列表（保持順序）

    Examples:
        >>> extract_record_ids('完成 [{"id":106}, {"id":107}]')
        [106, 107]
        >>> extract_record_ids("沒有標記")
        []
    """
    if not text:
        return []

    match = _IDS_PATTERN.search(text)
    if not match:
        return []

    try:
        items = json.loads(f"[{match.group(1)}]")
        record_ids = [item["id"] for item in items]
        logger.info(f"Extracted record IDs: {record_ids}")
        return record_ids
    except (ValueError, KeyError, TypeError) as e:
        logger.error(f"Error parsing record IDs: {e}")
        return []


def extract_type_marker(text: str) -> Optional[TransactionType]:
    """
    抽取獨立的交易類型標記 [{"type": "..."}]

    Returns:
        TransactionType，無標記或值無法辨識時回傳 None
    """
    if not text:
        return None

    match = _TYPE_MARKER_PATTERN.search(text)
    if not match:
        return None

    tx_type = TransactionType.from_value(match.group(1))
    if tx_type is None:
        logger.warning(f"Unknown transaction type marker: {match.group(1)}")
    return tx_type


def extract_transaction_type(text: str) -> TransactionType:
    """
    決定整則回覆的交易類型

    優先順序：
    1. 獨立標記 [{"type": "..."}]
    2. JSON 記錄內第一個 "type" 欄位
    3. 預設 expense
    """
    marker_type = extract_type_marker(text)
    if marker_type is not None:
        logger.info(f"Extracted transaction type: {marker_type.value}")
        return marker_type

    if text:
        match = _JSON_TYPE_PATTERN.search(text)
        if match:
            logger.info(f"Extracted transaction type from JSON data: {match.group(1)}")
            return TransactionType(match.group(1))

    return TransactionType.EXPENSE
