# -*- coding: utf-8 -*-
"""
Admin push mode

管理員（ADMIN_USER_ID）可以開啟 Push 模式，開啟後傳送的每則訊息
都會轉發給目標使用者（ADMIN_TARGET_USER_ID），不會送進 Dify。
"""

import logging
from typing import Any, Optional

from ledgerbot import config

logger = logging.getLogger(__name__)

ENABLE_COMMAND = "開啟Push模式"
DISABLE_COMMAND = "關閉Push模式"
STATUS_COMMAND = "Push狀態"

ENABLED_TEXT = "已開啟 Push 模式。您發送的所有消息將被轉發給目標用戶。"
DISABLED_TEXT = "已關閉 Push 模式。"
FORWARDED_TEXT = "已成功轉發消息給目標用戶。"
FORWARD_FAILED_TEXT = "消息轉發失敗，請稍後再試。"


class AdminController:
    """管理員指令處理（Push 模式旗標存在 KV store）"""

    def __init__(
        self,
        kv_store: Any,
        line_client: Any,
        admin_user_id: Optional[str] = None,
        target_user_id: Optional[str] = None,
    ):
        self.kv_store = kv_store
        self.line_client = line_client
        self.admin_user_id = admin_user_id if admin_user_id is not None else config.ADMIN_USER_ID
        self.target_user_id = target_user_id if target_user_id is not None else config.ADMIN_TARGET_USER_ID

    def _flag_key(self) -> str:
        return f"admin:push_mode:{self.admin_user_id}"

    def is_admin(self, user_id: Optional[str]) -> bool:
        return bool(self.admin_user_id) and user_id == self.admin_user_id

    def is_push_mode(self) -> bool:
        return bool(self.kv_store.get(self._flag_key()))

    def set_push_mode(self, enabled: bool) -> None:
        if enabled:
            self.kv_store.set(self._flag_key(), True)
        else:
            self.kv_store.delete(self._flag_key())
        logger.info(f"管理員 Push 模式已{'開啟' if enabled else '關閉'}")

    def handle(self, user_id: Optional[str], message: str) -> Optional[str]:
        """
        處理管理員訊息

        Returns:
            回覆文字；不是管理員指令時回傳 None（交給 Dify 處理）
        """
        if not self.is_admin(user_id):
            return None

        if message == ENABLE_COMMAND:
            self.set_push_mode(True)
            return ENABLED_TEXT
        if message == DISABLE_COMMAND:
            self.set_push_mode(False)
            return DISABLED_TEXT
        if message == STATUS_COMMAND:
            return f"Push 模式目前{'已開啟' if self.is_push_mode() else '已關閉'}"

        if self.is_push_mode():
            return self.forward(message)

        return None

    def forward(self, message: str) -> str:
        """把管理員訊息推送給目標使用者"""
        if not self.target_user_id:
            logger.error("ADMIN_TARGET_USER_ID is not configured")
            return FORWARD_FAILED_TEXT

        sent = self.line_client.push(self.target_user_id, [{"type": "text", "text": f"管理員消息: {message}"}])
        if not sent:
            return FORWARD_FAILED_TEXT
        logger.info(f"Forwarded admin message to {self.target_user_id}")
        return FORWARDED_TEXT
