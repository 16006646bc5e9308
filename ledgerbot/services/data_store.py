# -*- coding: utf-8 -*-
"""
Supabase Data Store (PostgREST API)

記帳資料由 Dify workflow 寫入 Supabase；這裡只負責讀取報表與分類資料，
以及觸發每日固定收支的 RPC。
"""

import logging
from datetime import timedelta
from typing import Any, Optional

import requests

from ledgerbot.config import SUPABASE_KEY, SUPABASE_TIMEOUT, SUPABASE_URL
from ledgerbot.summary.types import DateRange

logger = logging.getLogger(__name__)

RECURRING_RPC = "generate_daily_recurring_transactions"


def merge_categories(system_rows: list[dict], user_rows: list[dict]) -> dict[str, list[str]]:
    """
    合併系統預設分類與使用者分類

    - 使用者刪除的系統分類不顯示
    - 使用者自訂（未刪除）的分類接在系統分類後面
    - 同名分類只保留第一個

    Returns:
        {"expense": [...], "income": [...]}
    """
    deleted_names = {row.get("name") for row in user_rows if row.get("is_deleted") is True}
    valid_system = [row for row in system_rows if row.get("name") not in deleted_names]
    valid_user = [row for row in user_rows if row.get("is_deleted") is False]

    seen: set[str] = set()
    merged = {"expense": [], "income": []}
    for row in valid_system + valid_user:
        name = row.get("name")
        if not name or name in seen:
            continue
        seen.add(name)
        if row.get("type") in merged:
            merged[row["type"]].append(name)

    return merged


class SupabaseStore:
    """Supabase REST client"""

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: int = SUPABASE_TIMEOUT,
    ):
        self.url = (url or SUPABASE_URL or "").rstrip("/")
        self.key = key or SUPABASE_KEY
        self.session = session or requests.Session()
        self.timeout = timeout
        self.headers = {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Content-Type": "application/json",
        }

    @property
    def enabled(self) -> bool:
        return bool(self.url and self.key)

    def _get(self, table: str, params: list[tuple[str, str]]) -> Optional[list[dict]]:
        if not self.enabled:
            logger.error("Supabase 環境變量未設置正確")
            return None

        try:
            response = self.session.get(
                f"{self.url}/rest/v1/{table}",
                params=params,
                headers=self.headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            rows = response.json()
        except requests.RequestException as e:
            logger.error(f"查詢 {table} 時出錯: {e}")
            return None
        except ValueError as e:
            logger.error(f"{table} 回應不是合法 JSON: {e}")
            return None

        if not isinstance(rows, list):
            logger.error(f"{table} 回應格式錯誤: {rows}")
            return None
        return rows

    def query_transactions(self, user_id: str, date_range: Optional[DateRange]) -> Optional[list[dict]]:
        """
        查詢使用者在日期區間內的交易

        Args:
            user_id: LINE 使用者 ID
            date_range: 日期區間（含頭尾）；None 代表不限日期

        Returns:
            交易列表（依日期新到舊），失敗時回傳 None
        """
        params = [
            ("select", "*"),
            ("user_id", f"eq.{user_id}"),
            ("order", "datetime.desc"),
        ]
        if date_range is not None:
            # datetime 可能帶時間，結束日以「隔天之前」表示
            params.append(("datetime", f"gte.{date_range.start.isoformat()}"))
            params.append(("datetime", f"lt.{(date_range.end + timedelta(days=1)).isoformat()}"))

        rows = self._get("transactions", params)
        if rows is not None:
            logger.info(f"找到 {len(rows)} 筆交易記錄 (user={user_id}, range={date_range})")
        return rows

    def query_categories(self, user_id: str) -> Optional[dict[str, list[str]]]:
        """
        查詢使用者可用的分類

        Returns:
            {"expense": [...], "income": [...]}，失敗時回傳 None
        """
        system_rows = self._get("categories", [
            ("select", "name,type"),
            ("user_id", "is.null"),
            ("is_deleted", "eq.false"),
        ])
        if system_rows is None:
            return None

        user_rows = self._get("categories", [
            ("select", "name,type,is_deleted"),
            ("user_id", f"eq.{user_id}"),
        ])
        if user_rows is None:
            return None

        categories = merge_categories(system_rows, user_rows)
        logger.info(f"成功取得 {len(categories['income'])} 個收入分類和 {len(categories['expense'])} 個支出分類")
        return categories

    def generate_recurring_transactions(self) -> Optional[Any]:
        """呼叫 RPC 產生今日的固定收支記錄；失敗時回傳 None"""
        if not self.enabled:
            logger.error("Supabase 環境變量未設置正確")
            return None

        try:
            response = self.session.post(
                f"{self.url}/rest/v1/rpc/{RECURRING_RPC}",
                json={},
                headers=self.headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"執行 {RECURRING_RPC} 失敗: {e}")
            return None

        try:
            data = response.json() if response.content else {}
        except ValueError:
            data = {"raw": response.text}
        logger.info(f"{RECURRING_RPC} 執行成功: {data}")
        return data
