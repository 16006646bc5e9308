# -*- coding: utf-8 -*-
"""
LINE client 單元測試（reply / push 分批、下載限制）
"""

from unittest.mock import Mock

import pytest
from linebot.v3.messaging import ApiException

from ledgerbot.services.line_client import (
    ContentDownloadError,
    ContentTooLargeError,
    LineClient,
    chunk_messages,
)


def _messages(count: int) -> list[dict]:
    return [{"type": "text", "text": f"m{i}"} for i in range(count)]


@pytest.fixture
def messaging_api():
    return Mock()


@pytest.fixture
def blob_api():
    return Mock()


@pytest.fixture
def client(messaging_api, blob_api):
    return LineClient(access_token="token", messaging_api=messaging_api, blob_api=blob_api)


class TestChunkMessages:

    def test_chunks_of_five(self):
        assert [len(chunk) for chunk in chunk_messages(_messages(12))] == [5, 5, 2]

    def test_empty(self):
        assert chunk_messages([]) == []


class TestSend:

    def test_single_chunk_uses_reply(self, client, messaging_api):
        delivered = client.send("rt", "U1", _messages(3))

        assert delivered == 1
        request = messaging_api.reply_message.call_args[0][0]
        assert request.reply_token == "rt"
        assert len(request.messages) == 3
        messaging_api.push_message.assert_not_called()

    def test_extra_chunks_use_push(self, client, messaging_api):
        delivered = client.send("rt", "U1", _messages(7))

        assert delivered == 2
        assert messaging_api.reply_message.call_count == 1
        assert messaging_api.push_message.call_count == 1
        push_request = messaging_api.push_message.call_args[0][0]
        assert push_request.to == "U1"
        assert len(push_request.messages) == 2

    def test_reply_failure_falls_back_to_push_once(self, client, messaging_api):
        messaging_api.reply_message.side_effect = ApiException(status=400, reason="Invalid reply token")

        delivered = client.send("rt", "U1", _messages(2))

        assert delivered == 1
        assert messaging_api.push_message.call_count == 1

    def test_push_failure_is_logged_and_next_chunk_sent(self, client, messaging_api):
        messaging_api.push_message.side_effect = [ApiException(status=500), None]

        delivered = client.send(None, "U1", _messages(7))

        assert delivered == 1
        assert messaging_api.push_message.call_count == 2
        messaging_api.reply_message.assert_not_called()

    def test_no_user_id_cannot_push(self, client, messaging_api):
        messaging_api.reply_message.side_effect = ApiException(status=400)

        assert client.send("rt", None, _messages(1)) == 0
        messaging_api.push_message.assert_not_called()


class TestGetContent:

    def test_returns_bytes(self, client, blob_api):
        blob_api.get_message_content.return_value = bytearray(b"\x89PNG")
        assert client.get_content("m1") == b"\x89PNG"
        blob_api.get_message_content.assert_called_once_with("m1")

    def test_api_error(self, client, blob_api):
        blob_api.get_message_content.side_effect = ApiException(status=404)
        with pytest.raises(ContentDownloadError):
            client.get_content("m1")

    def test_empty_content(self, client, blob_api):
        blob_api.get_message_content.return_value = b""
        with pytest.raises(ContentDownloadError):
            client.get_content("m1")

    def test_too_large(self, client, blob_api):
        blob_api.get_message_content.return_value = b"x" * 11
        with pytest.raises(ContentTooLargeError):
            client.get_content("m1", max_bytes=10)


class TestShowLoading:

    def test_success(self, client, messaging_api):
        assert client.show_loading("U1") is True
        request = messaging_api.show_loading_animation.call_args[0][0]
        assert request.chat_id == "U1"
        assert request.loading_seconds == 30

    def test_failure_is_not_fatal(self, client, messaging_api):
        messaging_api.show_loading_animation.side_effect = ApiException(status=500)
        assert client.show_loading("U1") is False
