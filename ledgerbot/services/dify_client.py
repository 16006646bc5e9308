# -*- coding: utf-8 -*-
"""
Dify Chat Client

將使用者訊息（或圖片 URL）送到 Dify chat-messages API，取得回覆文字。
每個使用者的 conversation_id 存在 KV store，讓對話能延續。
"""

import logging
from typing import Any, Optional

import requests

from ledgerbot.config import DIFY_API_KEY, DIFY_API_URL, DIFY_APP_ID, DIFY_TIMEOUT, HTTP_TIMEOUT

logger = logging.getLogger(__name__)

RESET_COMMAND = "delete"
RESET_TEXT = "對話已重置，讓我們開始新的對話吧！"
IMAGE_UNAVAILABLE_TEXT = "抱歉，無法處理您的圖片，請稍後再試。"
UNAVAILABLE_TEXT = "抱歉，我現在無法回應，請稍後再試。"
IMAGE_QUERY = "請分析這張圖片"


class DifyClient:
    """Dify chat-messages API（blocking 模式）"""

    def __init__(
        self,
        kv_store: Any,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        app_id: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: int = DIFY_TIMEOUT,
    ):
        self.kv_store = kv_store
        self.api_url = api_url or DIFY_API_URL
        self.api_key = api_key or DIFY_API_KEY
        self.app_id = app_id if app_id is not None else DIFY_APP_ID
        self.session = session or requests.Session()
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _conversation_key(user_id: str) -> str:
        return f"dify:conversation:{user_id}"

    def get_conversation_id(self, user_id: str) -> str:
        return self.kv_store.get(self._conversation_key(user_id)) or ""

    def reset_conversation(self, user_id: str) -> None:
        self.kv_store.delete(self._conversation_key(user_id))
        logger.info(f"Conversation reset for user {user_id}")

    def is_url_accessible(self, url: str) -> bool:
        """HEAD 檢查圖片 URL 是否可以存取"""
        try:
            response = self.session.head(url, timeout=HTTP_TIMEOUT, allow_redirects=True)
            return 200 <= response.status_code < 300
        except requests.RequestException as e:
            logger.error(f"URL不可訪問: {url} ({e})")
            return False

    def build_payload(self, message: Optional[str], user_id: str, image_url: Optional[str] = None) -> dict:
        """
        組出 chat-messages 請求內容

        query 尾端附上 user_id，讓 Dify workflow 能寫入正確的使用者。
        """
        query = f"{message} user_id: {user_id}" if message else f"{IMAGE_QUERY} user_id: {user_id}"
        payload = {
            "inputs": {},
            "query": query,
            "response_mode": "blocking",
            "conversation_id": self.get_conversation_id(user_id),
            "user": user_id,
        }
        if image_url:
            payload["files"] = [
                {"type": "image", "transfer_method": "remote_url", "url": image_url},
            ]
        return payload

    def send(self, message: Optional[str], user_id: str, image_url: Optional[str] = None) -> str:
        """
        送出訊息並取得回覆

        Args:
            message: 使用者文字（圖片訊息時可為 None）
            user_id: LINE 使用者 ID
            image_url: 已上傳的圖片公開網址

        Returns:
            str: Dify 回覆；失敗時回傳道歉訊息
        """
        if message and message.strip().lower() == RESET_COMMAND:
            self.reset_conversation(user_id)
            return RESET_TEXT

        if image_url and not self.is_url_accessible(image_url):
            logger.error(f"圖片URL不可訪問: {image_url}")
            return IMAGE_UNAVAILABLE_TEXT

        payload = self.build_payload(message, user_id, image_url)
        params = {"app_id": self.app_id} if self.app_id else None

        try:
            logger.info(f"Sending message to Dify for user {user_id} (image={bool(image_url)})")
            response = self.session.post(
                self.api_url,
                params=params,
                json=payload,
                headers=self.headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            logger.error(f"Dify API Error: {e}")
            return UNAVAILABLE_TEXT
        except ValueError as e:
            logger.error(f"Dify returned invalid JSON: {e}")
            return UNAVAILABLE_TEXT

        conversation_id = data.get("conversation_id")
        if conversation_id and not payload["conversation_id"]:
            self.kv_store.set(self._conversation_key(user_id), conversation_id)
            logger.info(f"New conversation created: user={user_id}, conversation={conversation_id}")

        answer = data.get("answer")
        if answer is None:
            logger.error(f"Dify response has no answer: {data}")
            return UNAVAILABLE_TEXT
        return answer
