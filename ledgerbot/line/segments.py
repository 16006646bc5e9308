# -*- coding: utf-8 -*-
"""
Reply segments

一則 LINE 回覆由最多 5 個 segment 組成：
- TranscriptionSegment：語音辨識結果（綠色泡泡）
- FlexSegment：記錄 / 報表 / 教學卡片
- TextSegment：純文字
"""

from dataclasses import dataclass
from typing import Optional, Union

from ledgerbot.line import flex

TRANSCRIPTION_ALT_TEXT = "語音訊息內容"
_FLEX_CONTAINER_TYPES = ("bubble", "carousel")


@dataclass
class TextSegment:
    text: str
    sender: Optional[dict] = None          # 以其他角色（如 Cony）發送

    def to_message(self) -> dict:
        message = flex.text_message(self.text)
        if self.sender:
            message["sender"] = dict(self.sender)
        return message


@dataclass
class FlexSegment:
    contents: dict
    alt_text: str

    def is_well_formed(self) -> bool:
        """contents 必須是 bubble 或 carousel，且有 altText"""
        return (
            isinstance(self.contents, dict)
            and self.contents.get("type") in _FLEX_CONTAINER_TYPES
            and bool(self.alt_text)
        )

    def to_message(self) -> dict:
        return flex.flex_message(self.alt_text, self.contents)


@dataclass
class TranscriptionSegment:
    transcript: str

    def to_message(self) -> dict:
        body = flex.box(
            "vertical",
            [flex.text(f"：{self.transcript.strip()}", wrap=True, color="#FFFFFF", size="md")],
            backgroundColor="#1DB446",
            paddingAll="12px",
            cornerRadius="8px",
        )
        return flex.flex_message(TRANSCRIPTION_ALT_TEXT, flex.bubble(body, size="kilo"))


ReplySegment = Union[TextSegment, FlexSegment, TranscriptionSegment]
