# -*- coding: utf-8 -*-
"""
LINE Messaging API client (line-bot-sdk v3)

- show_loading：顯示「輸入中」動畫
- get_content：下載使用者傳送的圖片 / 語音
- reply / push：送出訊息（每次最多 5 則）
- send：超過 5 則時分批，第一批用 reply，其餘用 push
"""

import logging
from typing import Optional

from linebot.v3.messaging import (
    ApiClient,
    ApiException,
    Configuration,
    MessagingApi,
    MessagingApiBlob,
    PushMessageRequest,
    ReplyMessageRequest,
    ShowLoadingAnimationRequest,
)

from ledgerbot.config import (
    LINE_CHANNEL_ACCESS_TOKEN,
    LOADING_SECONDS,
    MAX_CONTENT_BYTES,
    MAX_MESSAGES_PER_REQUEST,
)

logger = logging.getLogger(__name__)


class ContentDownloadError(Exception):
    """訊息內容下載失敗"""
    pass


class ContentTooLargeError(Exception):
    """訊息內容過大"""
    pass


def chunk_messages(messages: list[dict], size: int = MAX_MESSAGES_PER_REQUEST) -> list[list[dict]]:
    """
    Examples:
        >>> [len(c) for c in chunk_messages([{}] * 7)]
        [5, 2]
    """
    return [messages[i:i + size] for i in range(0, len(messages), size)]


class LineClient:
    """LINE Messaging API 包裝"""

    def __init__(
        self,
        access_token: Optional[str] = None,
        messaging_api: Optional[MessagingApi] = None,
        blob_api: Optional[MessagingApiBlob] = None,
    ):
        self.access_token = access_token or LINE_CHANNEL_ACCESS_TOKEN
        self._messaging_api = messaging_api
        self._blob_api = blob_api
        self._api_client: Optional[ApiClient] = None

    def _get_api_client(self) -> ApiClient:
        if self._api_client is None:
            logger.info("Initializing LINE ApiClient")
            self._api_client = ApiClient(Configuration(access_token=self.access_token))
        return self._api_client

    @property
    def messaging_api(self) -> MessagingApi:
        if self._messaging_api is None:
            self._messaging_api = MessagingApi(self._get_api_client())
        return self._messaging_api

    @property
    def blob_api(self) -> MessagingApiBlob:
        if self._blob_api is None:
            self._blob_api = MessagingApiBlob(self._get_api_client())
        return self._blob_api

    def show_loading(self, user_id: str, seconds: int = LOADING_SECONDS) -> bool:
        """顯示載入動畫（失敗不影響後續處理）"""
        try:
            self.messaging_api.show_loading_animation(
                ShowLoadingAnimationRequest(chat_id=user_id, loading_seconds=seconds)
            )
            return True
        except ApiException as e:
            logger.warning(f"Failed to show loading animation for {user_id}: {e}")
            return False

    def get_content(self, message_id: str, max_bytes: int = MAX_CONTENT_BYTES) -> bytes:
        """
        下載訊息內容（圖片 / 語音）

        Raises:
            ContentDownloadError: 下載失敗
            ContentTooLargeError: 內容超過 max_bytes
        """
        logger.info(f"開始下載訊息內容，message_id={message_id}")
        try:
            content = self.blob_api.get_message_content(message_id)
        except ApiException as e:
            logger.error(f"訊息內容下載失敗: {e}")
            raise ContentDownloadError(f"訊息內容下載失敗: {e}") from e

        data = bytes(content or b"")
        if not data:
            raise ContentDownloadError(f"訊息內容為空，message_id={message_id}")
        if len(data) > max_bytes:
            raise ContentTooLargeError(f"內容過大（>{max_bytes} bytes）")

        logger.info(f"訊息內容下載成功，大小={len(data)} bytes")
        return data

    def reply(self, reply_token: str, messages: list[dict]) -> bool:
        try:
            self.messaging_api.reply_message(
                ReplyMessageRequest.from_dict({"replyToken": reply_token, "messages": messages})
            )
            logger.info(f"Replied {len(messages)} message(s)")
            return True
        except (ApiException, ValueError) as e:
            logger.error(f"Reply failed: {e}")
            return False

    def push(self, user_id: str, messages: list[dict]) -> bool:
        try:
            self.messaging_api.push_message(
                PushMessageRequest.from_dict({"to": user_id, "messages": messages})
            )
            logger.info(f"Pushed {len(messages)} message(s) to {user_id}")
            return True
        except (ApiException, ValueError) as e:
            logger.error(f"Push to {user_id} failed: {e}")
            return False

    def send(self, reply_token: Optional[str], user_id: Optional[str], messages: list[dict]) -> int:
        """
        送出任意數量的訊息

        第一批使用 reply token（失敗時改用 push 一次），其餘批次使用 push。
        失敗的批次只記錄 log，繼續送下一批。

        Returns:
            int: 成功送出的批次數
        """
        delivered = 0
        for index, chunk in enumerate(chunk_messages(messages)):
            if index == 0 and reply_token:
                if self.reply(reply_token, chunk):
                    delivered += 1
                    continue
                logger.warning("Reply failed, falling back to push")

            if not user_id:
                logger.error(f"No user id to push message chunk {index + 1}")
                continue
            if self.push(user_id, chunk):
                delivered += 1

        return delivered
