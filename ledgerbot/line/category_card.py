# -*- coding: utf-8 -*-
"""
Category list card

支出分類、收入分類各一個 bubble（兩者都有時為 carousel，支出在前），
每列三個分類，不足三個以透明格補齊。
"""

import logging
from typing import Optional

from ledgerbot.line import flex

logger = logging.getLogger(__name__)

EMPTY_CATEGORY_TEXT = "目前還沒有分類數據，請先創建一些分類。"
_COLUMNS = 3


def _category_label(name: str) -> dict:
    return flex.box(
        "vertical",
        [flex.text(name, size="md", color="#555555", align="center")],
        flex=1,
        backgroundColor="#F5F5F5",
        cornerRadius="lg",
        paddingAll="md",
    )


def _empty_label() -> dict:
    return flex.box(
        "vertical",
        [flex.text(" ", size="md", color="#FFFFFF00", align="center")],
        flex=1,
        backgroundColor="#FFFFFF00",
        cornerRadius="lg",
        paddingAll="md",
    )


def _category_row(names: list[str]) -> dict:
    cells = [_category_label(name) for name in names]
    cells.extend(_empty_label() for _ in range(_COLUMNS - len(names)))
    return flex.box("horizontal", cells, spacing="md")


def _category_bubble(title: str, color: str, names: list[str]) -> dict:
    rows = []
    for index, row_names in enumerate(flex.chunk_rows(names, _COLUMNS)):
        row = _category_row(row_names)
        if index > 0:
            row["margin"] = "md"
        rows.append(row)

    return flex.bubble(flex.box(
        "vertical",
        [
            flex.text(title, weight="bold", color=color, size="md"),
            flex.separator(margin="xl", color="#DDDDDD"),
            flex.box("vertical", rows, margin="xl", spacing="md"),
        ],
        paddingAll="xl",
    ))


def render_default_category_list() -> dict:
    """沒有任何分類時的卡片"""
    return flex.bubble(flex.box(
        "vertical",
        [
            flex.text("分類", weight="bold", color="#4A90E2", size="md"),
            flex.separator(margin="md", color="#DDDDDD"),
            flex.text(EMPTY_CATEGORY_TEXT, color="#555555", align="center", margin="md", wrap=True),
        ],
        paddingAll="xl",
    ))


def render_category_list(categories: Optional[dict]) -> dict:
    """
    產生分類列表卡片

    Args:
        categories: {"expense": [...], "income": [...]}，None 代表查詢失敗

    Returns:
        dict: 單一 bubble 或 carousel
    """
    categories = categories or {}
    expense = list(categories.get("expense") or [])
    income = list(categories.get("income") or [])

    if not expense and not income:
        logger.info("No categories found, using default category card")
        return render_default_category_list()

    bubbles = []
    if expense:
        bubbles.append(_category_bubble("支出分類", "#EB5757", expense))
    if income:
        bubbles.append(_category_bubble("收入分類", "#2D9CDB", income))

    logger.info(f"Rendering {len(expense)} expense and {len(income)} income categories")
    return bubbles[0] if len(bubbles) == 1 else flex.carousel(bubbles)
