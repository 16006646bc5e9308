# -*- coding: utf-8 -*-
"""
Reply pipeline types
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ledgerbot.parser.types import TransactionType


@dataclass
class BackendReply:
    """
    後端回覆（Dify 回覆文字 + 附帶資訊）

    語音訊息的回覆會帶 transcribed_text，讓回覆最前面顯示辨識結果。
    """

    text: str
    user_id: Optional[str] = None
    transcribed_text: Optional[str] = None
    is_cony: bool = False


class ReplyKind(Enum):
    """回覆類型（決定卡片 altText）"""

    TUTORIAL = "tutorial"
    BALANCE_SUMMARY = "balance_summary"
    SUMMARY = "summary"
    CATEGORY_LIST = "category_list"
    RECORD = "record"
    TEXT = "text"


@dataclass
class ProcessedReply:
    """回覆狀態機的輸出"""

    kind: ReplyKind = ReplyKind.TEXT
    text: str = ""
    cards: list[dict] = field(default_factory=list)
    transaction_type: TransactionType = TransactionType.EXPENSE
    caption: Optional[str] = None          # 報表日期區間說明（目前不送出）
