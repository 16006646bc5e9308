# -*- coding: utf-8 -*-
"""
管理員 Push 模式單元測試
"""

import pytest

from ledgerbot.line.admin import (
    DISABLED_TEXT,
    ENABLED_TEXT,
    FORWARD_FAILED_TEXT,
    FORWARDED_TEXT,
    AdminController,
)
from ledgerbot.services.kv_store import InMemoryKVStore
from tests.test_utils import make_line_client


@pytest.fixture
def line_client():
    return make_line_client()


@pytest.fixture
def admin(line_client):
    return AdminController(InMemoryKVStore(), line_client, admin_user_id="UADMIN", target_user_id="UTARGET")


class TestAdminController:

    def test_non_admin_is_ignored(self, admin, line_client):
        assert admin.handle("U123", "開啟Push模式") is None
        assert admin.is_push_mode() is False
        line_client.push.assert_not_called()

    def test_normal_message_without_push_mode(self, admin, line_client):
        assert admin.handle("UADMIN", "午餐 120") is None
        line_client.push.assert_not_called()

    def test_enable_forward_disable(self, admin, line_client):
        assert admin.handle("UADMIN", "開啟Push模式") == ENABLED_TEXT
        assert admin.handle("UADMIN", "Push狀態") == "Push 模式目前已開啟"

        assert admin.handle("UADMIN", "明天見") == FORWARDED_TEXT
        line_client.push.assert_called_once_with("UTARGET", [{"type": "text", "text": "管理員消息: 明天見"}])

        assert admin.handle("UADMIN", "關閉Push模式") == DISABLED_TEXT
        assert admin.handle("UADMIN", "Push狀態") == "Push 模式目前已關閉"
        assert admin.handle("UADMIN", "午餐 120") is None

    def test_forward_failure(self, admin, line_client):
        line_client.push.return_value = False
        admin.handle("UADMIN", "開啟Push模式")

        assert admin.handle("UADMIN", "hello") == FORWARD_FAILED_TEXT

    def test_missing_target(self, line_client):
        admin = AdminController(InMemoryKVStore(), line_client, admin_user_id="UADMIN", target_user_id="")
        admin.set_push_mode(True)

        assert admin.handle("UADMIN", "hello") == FORWARD_FAILED_TEXT
        line_client.push.assert_not_called()

    def test_no_admin_configured(self, line_client):
        admin = AdminController(InMemoryKVStore(), line_client, admin_user_id="", target_user_id="UTARGET")
        assert admin.handle("", "開啟Push模式") is None
