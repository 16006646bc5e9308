# -*- coding: utf-8 -*-
"""
Speech-to-text (OpenAI audio transcriptions)

LINE 語音訊息為 m4a，直接上傳給 OpenAI 轉成文字。
"""

import logging
import time
from typing import Optional

from openai import OpenAI, OpenAIError

from ledgerbot.config import OPENAI_API_KEY, TRANSCRIBE_LANGUAGE, TRANSCRIBE_MODEL

logger = logging.getLogger(__name__)


class TranscriptionError(Exception):
    """語音轉文字失敗"""
    pass


class TranscriptionClient:
    def __init__(
        self,
        client: Optional[OpenAI] = None,
        model: str = TRANSCRIBE_MODEL,
        language: str = TRANSCRIBE_LANGUAGE,
    ):
        self._client = client
        self.model = model
        self.language = language

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=OPENAI_API_KEY)
        return self._client

    def transcribe(self, audio_data: bytes, user_id: str) -> str:
        """
        語音轉文字

        Args:
            audio_data: m4a 音訊內容
            user_id: LINE 使用者 ID（只用於檔名）

        Returns:
            str: 辨識出的文字（可能為空字串）

        Raises:
            TranscriptionError: API 呼叫失敗
        """
        filename = f"audio_{user_id}_{int(time.time() * 1000)}.m4a"
        logger.info(f"開始語音轉文字，檔案={filename}，大小={len(audio_data)} bytes")

        try:
            result = self.client.audio.transcriptions.create(
                model=self.model,
                file=(filename, audio_data, "audio/m4a"),
                language=self.language,
                response_format="text",
            )
        except OpenAIError as e:
            logger.error(f"語音轉文字失敗: {e}")
            raise TranscriptionError(f"語音轉文字失敗: {e}") from e

        # response_format="text" 回傳字串，其他格式回傳帶 text 屬性的物件
        text = result if isinstance(result, str) else getattr(result, "text", "")
        text = (text or "").strip()
        logger.info(f"語音轉文字完成: {text}")
        return text
