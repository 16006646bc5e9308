# -*- coding: utf-8 -*-
"""
Summary report types
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional


class PeriodType(Enum):
    """報表週期"""

    DAY = "日"
    WEEK = "週"
    MONTH = "月"


@dataclass(frozen=True)
class DateRange:
    """查詢日期區間（含頭尾）"""

    start: date
    end: date


@dataclass
class AnalysisItem:
    """分類分析項目"""

    category: str
    amount: str = ""                       # 已格式化，如 "$ 1,200"
    percentage: str = "0%"                 # 如 "37%"


@dataclass
class SummaryDataset:
    """收支總結資料（供卡片渲染）"""

    title: str = ""
    income: Optional[str] = None           # None 代表沒有資料
    expense: Optional[str] = None
    balance: Optional[str] = None
    analysis_title: str = ""
    analysis_items: list[AnalysisItem] = field(default_factory=list)

    @property
    def has_figures(self) -> bool:
        return self.income is not None or self.expense is not None
