# -*- coding: utf-8 -*-
"""
LINE Event Dispatcher

處理 LINE webhook 事件：
1. 以 webhook_event_id 去重（5 分鐘內同一事件只處理一次）
2. 文字 → 管理員指令或 Dify；圖片 → 上傳後交給 Dify；語音 → 轉文字後交給 Dify
3. Dify 回覆 → 回覆狀態機 → 組成 messages → 送回 LINE

同一批事件依序處理，一個事件完成後才處理下一個。
"""

import logging
import time
from typing import Any, Iterable, Optional

from linebot.v3.webhooks import (
    AudioMessageContent,
    ImageMessageContent,
    MessageEvent,
    TextMessageContent,
)

from ledgerbot.config import EVENT_EXPIRY_SECONDS
from ledgerbot.line.assembler import assemble_messages
from ledgerbot.line.reply_processor import process_backend_reply
from ledgerbot.line.types import BackendReply, ProcessedReply
from ledgerbot.services.asset_host import AssetUploadError
from ledgerbot.services.line_client import ContentDownloadError, ContentTooLargeError
from ledgerbot.services.transcription import TranscriptionError

logger = logging.getLogger(__name__)

CONY_KEYWORD = "Cony"
IMAGE_ERROR_TEXT = "抱歉，處理圖片時發生錯誤"
AUDIO_EMPTY_TEXT = "抱歉，無法識別您的語音訊息，請再試一次。"
AUDIO_ERROR_TEXT = "抱歉，處理語音訊息時發生錯誤"
GENERIC_ERROR_TEXT = "抱歉，處理訊息時發生錯誤，請稍後再試。"


class EventDispatcher:
    """
    Webhook 事件分派

    Args:
        line_client: LineClient
        dify_client: DifyClient
        kv_store: 事件去重用的 KV store
        store: 報表 / 分類資料來源（SupabaseStore）
        asset_host: 圖片上傳（AssetHost）
        transcriber: 語音轉文字（TranscriptionClient）
        admin: 管理員指令（AdminController）
    """

    def __init__(
        self,
        line_client: Any,
        dify_client: Any,
        kv_store: Any,
        store: Any = None,
        asset_host: Any = None,
        transcriber: Any = None,
        admin: Any = None,
    ):
        self.line_client = line_client
        self.dify_client = dify_client
        self.kv_store = kv_store
        self.store = store
        self.asset_host = asset_host
        self.transcriber = transcriber
        self.admin = admin

    @staticmethod
    def _event_key(event_id: str) -> str:
        return f"event:{event_id}"

    def is_duplicate(self, event: Any) -> bool:
        """
        檢查並標記事件

        第一次看到事件時立即標記（TTL 5 分鐘），之後同一 ID 視為重複。
        沒有 webhook_event_id 的事件不去重。
        """
        event_id = getattr(event, "webhook_event_id", None)
        if not event_id:
            return False

        key = self._event_key(event_id)
        if self.kv_store.get(key) is not None:
            logger.info(f"Skipping duplicate event {event_id}")
            return True

        self.kv_store.set(key, int(time.time()), ttl=EVENT_EXPIRY_SECONDS)
        return False

    def handle_events(self, events: Iterable[Any]) -> int:
        """
        依序處理事件

        Returns:
            int: 實際處理（非重複、非略過）的事件數
        """
        self.kv_store.sweep()
        handled = 0
        for event in events:
            try:
                if self.handle_event(event):
                    handled += 1
            except Exception as e:
                logger.exception(f"Error handling event: {e}")
                self._send_apology(event)
        return handled

    def handle_event(self, event: Any) -> bool:
        """處理單一事件；回傳是否有送出回覆"""
        if not isinstance(event, MessageEvent):
            logger.info(f"Ignoring non-message event: {type(event).__name__}")
            return False

        if self.is_duplicate(event):
            return False

        user_id = event.source.user_id if event.source else None
        message = event.message
        if not isinstance(message, (TextMessageContent, ImageMessageContent, AudioMessageContent)):
            logger.info(f"Unsupported message type: {type(message).__name__}")
            return False

        if user_id:
            self.line_client.show_loading(user_id)

        if isinstance(message, TextMessageContent):
            admin_reply = self.admin.handle(user_id, message.text) if self.admin else None
            if admin_reply is not None:
                messages = assemble_messages(ProcessedReply(text=admin_reply))
                self.line_client.send(event.reply_token, user_id, messages)
                return True
            reply = self.handle_text(message.text, user_id)
        elif isinstance(message, ImageMessageContent):
            reply = self.handle_image(message.id, user_id)
        else:
            reply = self.handle_audio(message.id, user_id)

        processed = process_backend_reply(reply.text, user_id, self.store)
        messages = assemble_messages(
            processed,
            transcribed_text=reply.transcribed_text,
            is_cony=reply.is_cony,
        )
        self.line_client.send(event.reply_token, user_id, messages)
        return True

    def handle_text(self, text: str, user_id: str) -> BackendReply:
        logger.info(f"Received text message from {user_id}: {text}")
        answer = self.dify_client.send(text, user_id)
        return BackendReply(text=answer, user_id=user_id, is_cony=CONY_KEYWORD in (text or ""))

    def handle_image(self, message_id: str, user_id: str) -> BackendReply:
        """下載圖片 → 上傳 → Dify 分析"""
        if self.asset_host is None:
            logger.error("Asset host is not configured")
            return BackendReply(text=IMAGE_ERROR_TEXT, user_id=user_id)

        try:
            image_data = self.line_client.get_content(message_id)
            image_url = self.asset_host.upload_image(image_data)
        except (ContentDownloadError, ContentTooLargeError, AssetUploadError) as e:
            logger.error(f"Error processing image message: {e}")
            return BackendReply(text=IMAGE_ERROR_TEXT, user_id=user_id)

        answer = self.dify_client.send(None, user_id, image_url=image_url)
        return BackendReply(text=answer, user_id=user_id)

    def handle_audio(self, message_id: str, user_id: str) -> BackendReply:
        """下載語音 → 轉文字 → Dify；回覆會附上辨識結果"""
        if self.transcriber is None:
            logger.error("Transcription client is not configured")
            return BackendReply(text=AUDIO_ERROR_TEXT, user_id=user_id)

        try:
            audio_data = self.line_client.get_content(message_id)
            transcript = self.transcriber.transcribe(audio_data, user_id)
        except (ContentDownloadError, ContentTooLargeError, TranscriptionError) as e:
            logger.error(f"Error processing audio message: {e}")
            return BackendReply(text=AUDIO_ERROR_TEXT, user_id=user_id)

        if not transcript or not transcript.strip():
            return BackendReply(text=AUDIO_EMPTY_TEXT, user_id=user_id)

        answer = self.dify_client.send(transcript, user_id)
        return BackendReply(text=answer, user_id=user_id, transcribed_text=transcript)

    def _send_apology(self, event: Any) -> None:
        reply_token: Optional[str] = getattr(event, "reply_token", None)
        source = getattr(event, "source", None)
        user_id = getattr(source, "user_id", None)
        if not reply_token and not user_id:
            return
        self.line_client.send(reply_token, user_id, [{"type": "text", "text": GENERIC_ERROR_TEXT}])
