# -*- coding: utf-8 -*-
"""
Summary Aggregator

產生「日/週/月 收支總結」與「結餘」報表資料：
1. 先從 Dify 回覆文字中找「收入：$X」「支出：X」「結餘：X」與分類明細
2. 文字中沒有收入也沒有支出時，改向 Supabase 查詢該期間的交易並彙總
3. 都查不到時欄位維持 None，由卡片顯示 $ 0
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Optional

from ledgerbot.summary.periods import period_date_range, period_from_keyword
from ledgerbot.summary.types import AnalysisItem, SummaryDataset

logger = logging.getLogger(__name__)

_VALUE = r"([$¥￥]?\s*[0-9,]+(?:\.[0-9]{1,2})?)"
_INCOME_PATTERN = re.compile(rf"收入[：:]\s*{_VALUE}")
_EXPENSE_PATTERN = re.compile(rf"支出[：:]\s*{_VALUE}")
_BALANCE_PATTERN = re.compile(rf"(?:結餘|餘額)[：:]\s*{_VALUE}")
_CATEGORY_PATTERN = re.compile(rf"([\u4e00-\u9fa5a-zA-Z]+)[：:]\s*{_VALUE}\s*(?:\(([0-9.]+%)\))?")
_CURRENCY_GLYPH = re.compile(r"^[$¥￥]")
_NON_NUMERIC = re.compile(r"[$¥￥,\s]")

# 這些是報表標籤，不是分類
_SKIP_CATEGORIES = {"收入", "支出", "結餘", "餘額", "凈收入", "主要支出類別", "主要", "支出類別"}

INCOME_LABEL = "收入"
EXPENSE_LABEL = "支出"


def format_currency(value: float) -> str:
    """
    格式化金額（千分位、無小數）

    Examples:
        >>> format_currency(1234.6)
        '$ 1,235'
    """
    return f"$ {value:,.0f}"


def parse_currency(text: Optional[str]) -> Optional[float]:
    """把 "$ 1,234" 之類的字串轉回數字，無法轉換時回傳 None"""
    if not text:
        return None
    try:
        return float(_NON_NUMERIC.sub("", text))
    except ValueError:
        return None


def _with_currency_glyph(value: str) -> str:
    value = value.strip()
    return value if _CURRENCY_GLYPH.match(value) else f"$ {value}"


def _labelled_value(pattern: re.Pattern, text: str) -> Optional[str]:
    match = pattern.search(text)
    return _with_currency_glyph(match.group(1)) if match else None


def extract_categories(text: str) -> list[AnalysisItem]:
    """
    從文字抽取分類明細，如「餐飲：$1,200 (37.5%)」

    Examples:
        >>> extract_categories("餐飲：$1,200 (37.5%)")
        [AnalysisItem(category='餐飲', amount='$1,200', percentage='37.5%')]
    """
    items = []
    for match in _CATEGORY_PATTERN.finditer(text or ""):
        category = match.group(1).strip()
        if category in _SKIP_CATEGORIES:
            continue
        items.append(AnalysisItem(
            category=category,
            amount=_with_currency_glyph(match.group(2)),
            percentage=match.group(3).strip() if match.group(3) else "0%",
        ))
    return items


def compute_balance(income: Optional[str], expense: Optional[str]) -> Optional[str]:
    """收入、支出都有值時計算結餘"""
    income_value = parse_currency(income)
    expense_value = parse_currency(expense)
    if income_value is None or expense_value is None:
        return None
    return format_currency(income_value - expense_value)


@dataclass
class TransactionTotals:
    """交易彙總結果"""

    income: float = 0.0
    expense: float = 0.0
    income_items: list[AnalysisItem] = field(default_factory=list)
    expense_items: list[AnalysisItem] = field(default_factory=list)

    @property
    def balance(self) -> float:
        return self.income - self.expense


def _category_items(category_sums: dict[str, float], total: float) -> list[AnalysisItem]:
    if total <= 0:
        return []
    ranked = sorted(category_sums.items(), key=lambda kv: kv[1], reverse=True)
    return [
        AnalysisItem(
            category=category,
            amount=format_currency(amount),
            percentage=f"{round(amount / total * 100)}%",
        )
        for category, amount in ranked
    ]


def aggregate_transactions(rows: Iterable[dict[str, Any]]) -> Optional[TransactionTotals]:
    """
    彙總交易列表

    - type 為 income 的記入收入，其餘都記入支出
    - 沒有金額的交易略過；沒有分類的記為「其他」
    - 各分類百分比以同類型總額為分母，依金額由大到小排序

    Returns:
        TransactionTotals；沒有任何交易時回傳 None
    """
    rows = list(rows or [])
    if not rows:
        return None

    totals = TransactionTotals()
    income_sums: dict[str, float] = {}
    expense_sums: dict[str, float] = {}

    for row in rows:
        raw_amount = row.get("amount")
        if not raw_amount:
            logger.info(f"跳過沒有金額的交易 ID {row.get('id', 'unknown')}")
            continue
        try:
            amount = float(raw_amount)
        except (TypeError, ValueError):
            logger.warning(f"Invalid amount {raw_amount!r} in transaction {row.get('id', 'unknown')}")
            continue

        category = row.get("category") or "其他"
        if row.get("type") == "income":
            totals.income += amount
            income_sums[category] = income_sums.get(category, 0.0) + amount
        else:
            totals.expense += amount
            expense_sums[category] = expense_sums.get(category, 0.0) + amount

    totals.income_items = _category_items(income_sums, totals.income)
    totals.expense_items = _category_items(expense_sums, totals.expense)
    logger.info(f"總收入: {totals.income}, 總支出: {totals.expense}")
    return totals


def extract_summary_data(
    text: str,
    keyword: str,
    user_id: str,
    store: Any = None,
    *,
    today: Optional[date] = None,
) -> SummaryDataset:
    """
    產生報表資料

    Args:
        text: 要從中抽取數字的文字（通常就是關鍵字本身）
        keyword: 報表關鍵字，如「月支出總結」「月結餘」
        user_id: LINE 使用者 ID
        store: 提供 query_transactions(user_id, date_range) 的資料來源
        today: 今天日期（測試用）

    Returns:
        SummaryDataset：不會拋出例外
    """
    text = (text or "").strip()
    keyword = keyword or ""

    period = period_from_keyword(keyword)
    period_label = period.value if period else ""
    is_balance = "結餘" in keyword

    transaction_type = EXPENSE_LABEL
    if not is_balance:
        match = re.search(r"支出|收入", keyword)
        if match:
            transaction_type = match.group(0)

    title = f"{period_label}結餘" if is_balance else f"{period_label}{transaction_type}總結"
    dataset = SummaryDataset(
        title=title,
        income=_labelled_value(_INCOME_PATTERN, text),
        expense=_labelled_value(_EXPENSE_PATTERN, text),
        balance=_labelled_value(_BALANCE_PATTERN, text),
        analysis_title=f"{period_label}{transaction_type}分析",
        analysis_items=extract_categories(text),
    )

    if not dataset.has_figures and store is not None:
        date_range = period_date_range(period, today)
        logger.info(f"文字中沒有收支數字，改向資料庫查詢: user={user_id}, period={period_label}, range={date_range}")
        try:
            rows = store.query_transactions(user_id, date_range)
            totals = aggregate_transactions(rows)
        except Exception as e:
            logger.error(f"從資料庫取得交易時發生錯誤: {e}")
            totals = None

        if totals is not None:
            dataset.income = format_currency(totals.income)
            dataset.expense = format_currency(totals.expense)
            dataset.balance = format_currency(totals.balance)
            items = totals.income_items if transaction_type == INCOME_LABEL else totals.expense_items
            if items:
                dataset.analysis_items = items
            else:
                logger.info(f"資料庫中沒有{transaction_type}分析項目")

    if dataset.balance is None:
        dataset.balance = compute_balance(dataset.income, dataset.expense)

    return dataset
