# -*- coding: utf-8 -*-
"""
Summary / balance cards

收支總結卡片版面（body.contents）：
    [0] 上方區塊：標題、結餘、{週期}收入、{週期}支出
    [1] 分隔線
    [2] 分析標題
    [3] 分析區塊：堆疊長條圖 + 三欄圖例（無資料時為灰色長條 + 「暫無分析數據」）

結餘卡片只有上方區塊。
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Optional

from ledgerbot.line import flex
from ledgerbot.summary.types import AnalysisItem, SummaryDataset

logger = logging.getLogger(__name__)

PALETTE = (
    "#FF6B6B", "#4ECDC4", "#45B7D1", "#FFA07A", "#98D8C8", "#F7DC6F",
    "#BB8FCE", "#85C1E2", "#F8B739", "#52B788", "#E76F51",
)
EMPTY_BAR_COLOR = "#DDDDDD"
NO_ANALYSIS_TEXT = "暫無分析數據"
ZERO_AMOUNT = "$ 0"
LEGEND_COLUMNS = 3

_PERIOD_PATTERN = re.compile(r"(日|週|周|月)")
_PERCENT_PATTERN = re.compile(r"-?[0-9]+(?:\.[0-9]+)?")


@dataclass
class BarSegment:
    """長條圖的一段"""

    category: str
    percentage: int                        # 四捨五入後的百分比（圖例顯示用）
    width: int                             # 長條寬度（全部加總為 100）
    color: str


def period_prefix(title: str) -> str:
    """
    Examples:
        >>> period_prefix("週支出總結")
        '週'
        >>> period_prefix("總結")
        ''
    """
    match = _PERIOD_PATTERN.search(title or "")
    if not match:
        return ""
    return "週" if match.group(1) == "周" else match.group(1)


def parse_percentage(value: object) -> float:
    match = _PERCENT_PATTERN.search(str(value or ""))
    return float(match.group(0)) if match else 0.0


def build_bar_segments(items: list[AnalysisItem]) -> list[BarSegment]:
    """
    計算長條圖各段寬度

    1. 百分比取整數，去掉 0% 的項目，依百分比由大到小排序
    2. 寬度以「剩餘項目百分比總和」為分母換算
    3. 除最後一段外都無條件捨去，最後一段補足到 100

    Examples:
        >>> [s.width for s in build_bar_segments([AnalysisItem("A", percentage="50%"),
        ...                                       AnalysisItem("B", percentage="50%")])]
        [50, 50]
    """
    ranked = []
    for item in items:
        percentage = int(round(parse_percentage(item.percentage)))
        if percentage > 0:
            ranked.append((item.category, percentage))
    ranked.sort(key=lambda pair: pair[1], reverse=True)

    total = sum(percentage for _, percentage in ranked)
    segments: list[BarSegment] = []
    used = 0
    for index, (category, percentage) in enumerate(ranked):
        if index == len(ranked) - 1:
            width = 100 - used
        else:
            width = math.floor(percentage / total * 100)
            used += width
        segments.append(BarSegment(
            category=category,
            percentage=percentage,
            width=width,
            color=PALETTE[index % len(PALETTE)],
        ))
    return segments


def _figure(caption: str, value: Optional[str], *, size: str, color: str) -> dict:
    return flex.box(
        "vertical",
        [
            flex.text(caption, size="xs", color="#8C8C8C"),
            flex.text(value or ZERO_AMOUNT, size=size, weight="bold", color=color,
                      adjustMode="shrink-to-fit", maxLines=1),
        ],
        flex=1,
    )


def _top_section(dataset: SummaryDataset) -> dict:
    prefix = period_prefix(dataset.title)
    return flex.box(
        "vertical",
        [
            flex.text(dataset.title or "收支總結", size="lg", weight="bold", color="#333333"),
            flex.box(
                "vertical",
                [_figure("結餘", dataset.balance, size="xxl", color="#333333")],
                margin="md",
            ),
            flex.box(
                "horizontal",
                [
                    _figure(f"{prefix}收入", dataset.income, size="lg", color="#2D9CDB"),
                    _figure(f"{prefix}支出", dataset.expense, size="lg", color="#EB5757"),
                ],
                margin="md",
                spacing="md",
            ),
        ],
    )


def _bar(segments: list[BarSegment]) -> dict:
    if not segments:
        parts = [flex.box("vertical", [], width="100%", backgroundColor=EMPTY_BAR_COLOR)]
    else:
        parts = [
            flex.box("vertical", [], width=f"{segment.width}%", backgroundColor=segment.color)
            for segment in segments
        ]
    return flex.box("horizontal", parts, height="12px", cornerRadius="6px", backgroundColor=EMPTY_BAR_COLOR)


def _legend_cell(segment: BarSegment) -> dict:
    return flex.box(
        "horizontal",
        [
            flex.box("vertical", [], width="10px", height="10px", backgroundColor=segment.color,
                     cornerRadius="2px", offsetTop="3px"),
            flex.text(segment.category, size="xs", color="#555555", margin="sm", flex=3,
                      adjustMode="shrink-to-fit", maxLines=1),
            flex.text(f"{segment.percentage}%", size="xs", color="#8C8C8C", align="end", flex=2),
        ],
        flex=1,
    )


def _legend_rows(segments: list[BarSegment]) -> list[dict]:
    rows = []
    for row in flex.chunk_rows(segments, LEGEND_COLUMNS):
        cells = [_legend_cell(segment) for segment in row]
        cells.extend(flex.filler_cell() for _ in range(LEGEND_COLUMNS - len(row)))
        rows.append(flex.box("horizontal", cells, spacing="sm", margin="md"))
    return rows


def _analysis_container(items: list[AnalysisItem]) -> dict:
    segments = build_bar_segments(items)
    if not segments:
        contents = [
            _bar([]),
            flex.text(NO_ANALYSIS_TEXT, size="sm", color="#aaaaaa", align="center", margin="md"),
        ]
    else:
        contents = [_bar(segments), *_legend_rows(segments)]
    return flex.box("vertical", contents, margin="md")


def render_summary(dataset: SummaryDataset) -> dict:
    """
    產生收支總結卡片

    Returns:
        dict: Flex bubble，任何錯誤都回傳簡化版卡片
    """
    try:
        body = flex.box(
            "vertical",
            [
                _top_section(dataset),
                flex.separator(margin="lg"),
                flex.box(
                    "vertical",
                    [flex.text(dataset.analysis_title or "分析", size="md", weight="bold", color="#333333")],
                    margin="lg",
                ),
                _analysis_container(list(dataset.analysis_items or [])),
            ],
        )
        return flex.bubble(body)
    except Exception as e:
        logger.error(f"Error creating summary card: {e}")
        return render_fallback_summary(dataset)


def render_balance_summary(dataset: SummaryDataset) -> dict:
    """產生結餘卡片（只有上方區塊）"""
    try:
        return flex.bubble(flex.box("vertical", [_top_section(dataset)]))
    except Exception as e:
        logger.error(f"Error creating balance card: {e}")
        return render_fallback_summary(dataset)


def render_fallback_summary(dataset: SummaryDataset) -> dict:
    """簡化版報表卡片"""
    title = getattr(dataset, "title", None) or "收支總結"
    lines = [
        ("結餘", getattr(dataset, "balance", None)),
        ("收入", getattr(dataset, "income", None)),
        ("支出", getattr(dataset, "expense", None)),
    ]
    return flex.bubble(flex.box(
        "vertical",
        [flex.text(str(title), weight="bold", size="lg")]
        + [flex.text(f"{label}：{value or ZERO_AMOUNT}", size="sm", color="#555555") for label, value in lines],
    ))
