# -*- coding: utf-8 -*-
"""
Summary Module

收支總結與結餘報表資料。

Usage:
    from ledgerbot.summary import extract_summary_data
    dataset = extract_summary_data("月支出總結", "月支出總結", user_id, store)
"""

from ledgerbot.summary.aggregator import (
    aggregate_transactions,
    compute_balance,
    extract_categories,
    extract_summary_data,
    format_currency,
    parse_currency,
)
from ledgerbot.summary.periods import date_range_caption, period_date_range, period_from_keyword
from ledgerbot.summary.types import AnalysisItem, DateRange, PeriodType, SummaryDataset

# Export
__all__ = [
    "extract_summary_data",
    "aggregate_transactions",
    "extract_categories",
    "format_currency",
    "parse_currency",
    "compute_balance",
    "date_range_caption",
    "period_date_range",
    "period_from_keyword",
    "AnalysisItem",
    "DateRange",
    "PeriodType",
    "SummaryDataset",
]
