# -*- coding: utf-8 -*-
"""
Transaction record types shared by the extractor, normalizer and card renderer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union


class TransactionType(Enum):
    """交易類型 Enum"""

    INCOME = "income"    # 收入
    EXPENSE = "expense"  # 支出

    @classmethod
    def from_value(cls, value: Any) -> Optional["TransactionType"]:
        """從字串轉換為 TransactionType，無法辨識時回傳 None"""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        text = value.strip()
        if text in ("收入", "固定收入"):
            return cls.INCOME
        if text in ("支出", "固定支出"):
            return cls.EXPENSE
        try:
            return cls(text.lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class RecordVariant:
    """卡片膠囊（pill）的顯示樣式"""

    label: str
    color: str
    padding: str
    pill_flex: int


EXPENSE_VARIANT = RecordVariant(label="支出", color="#1DB446", padding="0px", pill_flex=2)
FIXED_EXPENSE_VARIANT = RecordVariant(label="固定支出", color="#EB5757", padding="8px", pill_flex=3)
INCOME_VARIANT = RecordVariant(label="收入", color="#2D9CDB", padding="0px", pill_flex=2)
FIXED_INCOME_VARIANT = RecordVariant(label="固定收入", color="#4A90E2", padding="8px", pill_flex=3)

_VARIANTS = {
    (TransactionType.EXPENSE, False): EXPENSE_VARIANT,
    (TransactionType.EXPENSE, True): FIXED_EXPENSE_VARIANT,
    (TransactionType.INCOME, False): INCOME_VARIANT,
    (TransactionType.INCOME, True): FIXED_INCOME_VARIANT,
}

DEFAULT_CATEGORY = "未分類"
DEFAULT_MEMO = "無備註"

RecordId = Union[int, str]


@dataclass
class TransactionRecord:
    """單筆收支記錄（由 Dify 回覆中抽取）"""

    category: str = DEFAULT_CATEGORY
    amount: Any = None                     # 可能缺少或格式錯誤
    memo: str = DEFAULT_MEMO
    datetime: str = ""                     # YYYY-MM-DD
    type: TransactionType = TransactionType.EXPENSE
    is_fixed: bool = False                 # 固定（週期性）收支
    record_id: RecordId = ""               # 用於編輯按鈕連結
    user_id: Optional[str] = None
    extra: dict = field(default_factory=dict)  # 未知欄位原樣保留

    @property
    def variant(self) -> RecordVariant:
        return _VARIANTS[(self.type, bool(self.is_fixed))]

    def to_dict(self) -> dict:
        """轉換為字典格式"""
        data = dict(self.extra)
        data.update({
            "category": self.category,
            "amount": self.amount,
            "memo": self.memo,
            "datetime": self.datetime,
            "type": self.type.value,
            "is_fixed": self.is_fixed,
            "record_id": self.record_id,
        })
        if self.user_id is not None:
            data["user_id"] = self.user_id
        return data
