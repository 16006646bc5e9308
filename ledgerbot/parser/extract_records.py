# -*- coding: utf-8 -*-
"""
Record Payload Extraction Strategies

依優先順序嘗試從 Dify 回覆中找出記錄 JSON：
1. ```json 程式碼區塊（可多個；陣列或單一物件）
2. 直接出現在文字中的 [{"category": ...}] 陣列
3. 直接出現在文字中的 {"category": ...} / {"user_id": ...} 物件
4. 舊版固定句型「以下是您本次的紀錄：」（非合法 JSON 時的最後手段）

每個策略都是純函式：成功回傳 StrategyMatch，失敗拋出 ExtractionError。
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable

from ledgerbot.parser.errors import ExtractionError, ExtractionErrorCode

logger = logging.getLogger(__name__)

_CODE_BLOCK_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_BARE_ARRAY_PATTERN = re.compile(r'\[\s*\{\s*"category"[\s\S]*?\}\s*\]')
_BARE_OBJECT_PATTERN = re.compile(r'\{\s*"(?:user_id|category)"[\s\S]*?\}')
_LEGACY_TEMPLATE_PATTERN = re.compile(
    r'以下是您本次的紀錄：\s*\n\{\s*\n'
    r'\s*"category":\s*"([^"]+)",\s*\n'
    r'\s*"amount":\s*(\d+),\s*\n'
    r'\s*"memo":\s*"([^"]*)",\s*\n'
    r'\s*"is_fixed":\s*(true|false),\s*\n'
    r'\s*"user_id":\s*"([^"]*)",\s*\n'
    r'\s*"datetime":\s*"([^"]+)"\s*\n'
    r'\s*\}'
)


@dataclass
class StrategyMatch:
    """單一策略的抽取結果"""

    payloads: list[dict] = field(default_factory=list)  # 原始 JSON 物件
    fragments: list[str] = field(default_factory=list)  # 命中的原文片段


Strategy = Callable[[str], StrategyMatch]


def _parse_payloads(content: str, strategy: str) -> list[dict]:
    """將 JSON 字串解析為記錄物件列表"""
    try:
        data = json.loads(content)
    except (ValueError, RecursionError) as e:
        # RecursionError: 過深的巢狀陣列 / 物件
        raise ExtractionError.from_code(ExtractionErrorCode.INVALID_JSON, strategy=strategy, reason=str(e))

    if isinstance(data, dict):
        return [data]

    if isinstance(data, list):
        payloads = [item for item in data if isinstance(item, dict)]
        if len(payloads) != len(data):
            logger.warning(f"{strategy}: skipped {len(data) - len(payloads)} non-object item(s)")
        if not payloads:
            raise ExtractionError.from_code(ExtractionErrorCode.EMPTY_PAYLOAD, strategy=strategy)
        return payloads

    raise ExtractionError.from_code(ExtractionErrorCode.NOT_A_RECORD, strategy=strategy)


def extract_from_code_blocks(text: str) -> StrategyMatch:
    """從 ``` 程式碼區塊抽取（所有區塊的記錄依序合併）"""
    result = StrategyMatch()
    last_error = None

    for match in _CODE_BLOCK_PATTERN.finditer(text):
        content = match.group(1).strip()
        is_array = content.startswith("[") and content.endswith("]")
        is_object = content.startswith("{") and content.endswith("}")
        if not (is_array or is_object):
            continue

        try:
            payloads = _parse_payloads(content, "code_block")
        except ExtractionError as e:
            logger.error(f"Error parsing JSON in code block: {e}")
            last_error = e
            continue

        logger.info(f"Found {len(payloads)} record(s) in code block")
        result.payloads.extend(payloads)
        result.fragments.append(match.group(0))

    if not result.payloads:
        raise last_error or ExtractionError.from_code(ExtractionErrorCode.NO_MATCH, strategy="code_block")
    return result


def extract_bare_array(text: str) -> StrategyMatch:
    """從文字中直接出現的 JSON 陣列抽取"""
    match = _BARE_ARRAY_PATTERN.search(text)
    if not match:
        raise ExtractionError.from_code(ExtractionErrorCode.NO_MATCH, strategy="bare_array")

    payloads = _parse_payloads(match.group(0), "bare_array")
    logger.info(f"Found JSON array with {len(payloads)} record(s)")
    return StrategyMatch(payloads=payloads, fragments=[match.group(0)])


def extract_bare_object(text: str) -> StrategyMatch:
    """從文字中直接出現的單一 JSON 物件抽取"""
    match = _BARE_OBJECT_PATTERN.search(text)
    if not match:
        raise ExtractionError.from_code(ExtractionErrorCode.NO_MATCH, strategy="bare_object")

    payloads = _parse_payloads(match.group(0), "bare_object")
    return StrategyMatch(payloads=payloads[:1], fragments=[match.group(0)])


def extract_legacy_template(text: str) -> StrategyMatch:
    """舊版固定句型（欄位順序固定，依位置擷取）"""
    match = _LEGACY_TEMPLATE_PATTERN.search(text)
    if not match:
        raise ExtractionError.from_code(ExtractionErrorCode.NO_MATCH, strategy="legacy_template")

    payload: dict[str, Any] = {
        "category": match.group(1),
        "amount": int(match.group(2)),
        "memo": match.group(3),
        "is_fixed": match.group(4) == "true",
        "user_id": match.group(5),
        "datetime": match.group(6),
    }
    logger.info(f"Extracted data using exact format match: {payload}")
    return StrategyMatch(payloads=[payload], fragments=[match.group(0)])


# 優先順序即為嘗試順序；第一個成功的策略勝出，策略之間不合併
STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("code_block", extract_from_code_blocks),
    ("bare_array", extract_bare_array),
    ("bare_object", extract_bare_object),
    ("legacy_template", extract_legacy_template),
)
