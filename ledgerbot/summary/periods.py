# -*- coding: utf-8 -*-
"""
Period helpers (台北時區)

- 日：今天
- 週：本週一 ~ 今天
- 月：本月 1 日 ~ 今天
"""

import re
from datetime import date, datetime, timedelta
from typing import Optional

from ledgerbot.config import TIMEZONE
from ledgerbot.summary.types import DateRange, PeriodType

_PERIOD_PATTERN = re.compile(r"(日|週|周|月)")


def taipei_today() -> date:
    return datetime.now(TIMEZONE).date()


def period_from_keyword(keyword: str) -> Optional[PeriodType]:
    """
    從關鍵字判斷週期（「周」視同「週」）

    Examples:
        >>> period_from_keyword("本周支出總結")
        <PeriodType.WEEK: '週'>
        >>> period_from_keyword("餘額") is None
        True
    """
    if not keyword:
        return None
    match = _PERIOD_PATTERN.search(keyword)
    if not match:
        return None
    value = "週" if match.group(1) == "周" else match.group(1)
    return PeriodType(value)


def period_date_range(period: Optional[PeriodType], today: Optional[date] = None) -> Optional[DateRange]:
    """
    計算週期的日期區間

    Returns:
        DateRange；週期不明時回傳 None（代表不限日期）
    """
    if period is None:
        return None

    today = today or taipei_today()
    if period == PeriodType.DAY:
        return DateRange(start=today, end=today)
    if period == PeriodType.WEEK:
        # weekday(): 週一為 0
        return DateRange(start=today - timedelta(days=today.weekday()), end=today)
    return DateRange(start=today.replace(day=1), end=today)


def date_range_caption(period: Optional[PeriodType], today: Optional[date] = None) -> str:
    """
    報表說明文字，如「以下是本月 2024/01/01 - 2024/01/15的分析」

    Examples:
        >>> date_range_caption(PeriodType.DAY, date(2024, 1, 15))
        '以下是本日 2024/01/15的分析'
        >>> date_range_caption(PeriodType.WEEK, date(2024, 1, 17))
        '以下是本週 2024/01/15 - 2024/01/17的分析'
    """
    today = today or taipei_today()
    date_range = period_date_range(period, today)
    label = period.value if period else ""

    if date_range is None or period == PeriodType.DAY:
        range_text = today.strftime("%Y/%m/%d")
    else:
        range_text = f"{date_range.start.strftime('%Y/%m/%d')} - {date_range.end.strftime('%Y/%m/%d')}"

    return f"以下是本{label} {range_text}的分析"
