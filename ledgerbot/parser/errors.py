# -*- coding: utf-8 -*-
"""
Extraction Error Types

定義抽取策略的錯誤類型與訊息模板。這些錯誤只在策略之間流動，
不會離開 extract()。
"""

from enum import Enum
from dataclasses import dataclass
from typing import Optional


class ExtractionErrorCode(Enum):
    """抽取錯誤代碼"""

    NO_MATCH = "no_match"              # 找不到符合的片段
    INVALID_JSON = "invalid_json"      # JSON 格式錯誤
    NOT_A_RECORD = "not_a_record"      # JSON 不是物件或物件陣列
    EMPTY_PAYLOAD = "empty_payload"    # 陣列內沒有任何記錄


# 錯誤訊息模板
ERROR_MESSAGES = {
    ExtractionErrorCode.NO_MATCH: "找不到 {strategy} 格式的記錄",
    ExtractionErrorCode.INVALID_JSON: "{strategy} 內容不是合法 JSON：{reason}",
    ExtractionErrorCode.NOT_A_RECORD: "{strategy} 內容不是記錄物件",
    ExtractionErrorCode.EMPTY_PAYLOAD: "{strategy} 內容沒有任何記錄",
}


@dataclass
class ExtractionError(Exception):
    """抽取錯誤"""

    code: ExtractionErrorCode
    message: str
    details: Optional[dict] = None

    def __str__(self) -> str:
        return self.message

    @classmethod
    def from_code(cls, code: ExtractionErrorCode, **kwargs) -> "ExtractionError":
        """從錯誤代碼建立錯誤物件"""
        template = ERROR_MESSAGES.get(code, "抽取錯誤")
        try:
            message = template.format(**kwargs) if kwargs else template
        except KeyError:
            message = template
        return cls(code=code, message=message, details=kwargs if kwargs else None)
