# -*- coding: utf-8 -*-
"""
HTTP 服務單元測試（Dify / Supabase / Cloudinary / OpenAI 語音）

requests.Session 與 OpenAI client 全部以 Mock 取代，只驗證請求內容與錯誤處理。
"""

import hashlib
import io
from datetime import date
from unittest.mock import Mock

import pytest
import requests
from openai import OpenAIError
from PIL import Image

from ledgerbot.services.asset_host import AssetHost, AssetUploadError, compress_image, sign_params
from ledgerbot.services.data_store import SupabaseStore, merge_categories
from ledgerbot.services.dify_client import (
    IMAGE_UNAVAILABLE_TEXT,
    RESET_TEXT,
    UNAVAILABLE_TEXT,
    DifyClient,
)
from ledgerbot.services.kv_store import InMemoryKVStore
from ledgerbot.services.transcription import TranscriptionClient, TranscriptionError
from ledgerbot.summary.types import DateRange
from tests.test_utils import make_http_response


# ==================== Dify ====================

@pytest.fixture
def kv_store():
    return InMemoryKVStore()


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def dify(kv_store, session):
    return DifyClient(kv_store, api_url="https://dify.example/v1/chat-messages", api_key="key",
                      app_id="app-1", session=session, timeout=5)


class TestDifyClient:

    def test_first_message_saves_conversation(self, dify, session, kv_store):
        session.post.return_value = make_http_response({"answer": "好的", "conversation_id": "conv-1"})

        assert dify.send("午餐 120", "U1") == "好的"

        kwargs = session.post.call_args.kwargs
        assert session.post.call_args.args[0] == "https://dify.example/v1/chat-messages"
        assert kwargs["params"] == {"app_id": "app-1"}
        assert kwargs["json"]["query"] == "午餐 120 user_id: U1"
        assert kwargs["json"]["conversation_id"] == ""
        assert kwargs["json"]["response_mode"] == "blocking"
        assert kwargs["headers"]["Authorization"] == "Bearer key"
        assert kwargs["timeout"] == 5
        assert kv_store.get("dify:conversation:U1") == "conv-1"

    def test_existing_conversation_is_reused(self, dify, session, kv_store):
        kv_store.set("dify:conversation:U1", "conv-9")
        session.post.return_value = make_http_response({"answer": "ok", "conversation_id": "conv-9"})

        dify.send("hi", "U1")

        assert session.post.call_args.kwargs["json"]["conversation_id"] == "conv-9"

    @pytest.mark.parametrize("command", ["delete", "DELETE", " Delete "])
    def test_delete_resets(self, dify, session, kv_store, command):
        kv_store.set("dify:conversation:U1", "conv-9")

        assert dify.send(command, "U1") == RESET_TEXT
        assert kv_store.get("dify:conversation:U1") is None
        session.post.assert_not_called()

    def test_image_payload(self, dify, session):
        session.head.return_value = Mock(status_code=200)
        session.post.return_value = make_http_response({"answer": "收據"})

        assert dify.send(None, "U1", image_url="https://img/1.jpg") == "收據"

        payload = session.post.call_args.kwargs["json"]
        assert payload["query"] == "請分析這張圖片 user_id: U1"
        assert payload["files"] == [{"type": "image", "transfer_method": "remote_url", "url": "https://img/1.jpg"}]

    def test_inaccessible_image(self, dify, session):
        session.head.return_value = Mock(status_code=404)

        assert dify.send(None, "U1", image_url="https://img/404.jpg") == IMAGE_UNAVAILABLE_TEXT
        session.post.assert_not_called()

    def test_http_error_returns_apology(self, dify, session):
        session.post.side_effect = requests.Timeout("slow")
        assert dify.send("hi", "U1") == UNAVAILABLE_TEXT

    def test_missing_answer(self, dify, session):
        session.post.return_value = make_http_response({"event": "error"})
        assert dify.send("hi", "U1") == UNAVAILABLE_TEXT


# ==================== Supabase ====================

@pytest.fixture
def supabase(session):
    return SupabaseStore(url="https://db.example/", key="anon", session=session, timeout=7)


class TestSupabaseStore:

    def test_query_transactions_date_filter(self, supabase, session):
        session.get.return_value = make_http_response([{"amount": 1}])

        rows = supabase.query_transactions("U1", DateRange(date(2024, 1, 1), date(2024, 1, 31)))

        assert rows == [{"amount": 1}]
        args, kwargs = session.get.call_args
        assert args[0] == "https://db.example/rest/v1/transactions"
        assert ("user_id", "eq.U1") in kwargs["params"]
        assert ("datetime", "gte.2024-01-01") in kwargs["params"]
        assert ("datetime", "lt.2024-02-01") in kwargs["params"]
        assert kwargs["headers"]["apikey"] == "anon"
        assert kwargs["headers"]["Authorization"] == "Bearer anon"
        assert kwargs["timeout"] == 7

    def test_query_transactions_without_range(self, supabase, session):
        session.get.return_value = make_http_response([])

        supabase.query_transactions("U1", None)

        params = session.get.call_args.kwargs["params"]
        assert not any(key == "datetime" for key, _ in params)

    def test_request_failure_returns_none(self, supabase, session):
        session.get.side_effect = requests.ConnectionError("down")
        assert supabase.query_transactions("U1", None) is None

    def test_not_configured(self, session):
        store = SupabaseStore(url="https://db.example", key="anon", session=session)
        store.key = ""
        assert store.query_categories("U1") is None
        session.get.assert_not_called()

    def test_query_categories(self, supabase, session):
        session.get.side_effect = [
            make_http_response([
                {"name": "餐飲", "type": "expense"},
                {"name": "娛樂", "type": "expense"},
                {"name": "薪水", "type": "income"},
            ]),
            make_http_response([
                {"name": "娛樂", "type": "expense", "is_deleted": True},
                {"name": "寵物", "type": "expense", "is_deleted": False},
                {"name": "餐飲", "type": "expense", "is_deleted": False},
            ]),
        ]

        assert supabase.query_categories("U1") == {"expense": ["餐飲", "寵物"], "income": ["薪水"]}

    def test_generate_recurring_transactions(self, supabase, session):
        session.post.return_value = make_http_response({"inserted": 2}, content=b'{"inserted": 2}')

        assert supabase.generate_recurring_transactions() == {"inserted": 2}
        assert session.post.call_args.args[0] == "https://db.example/rest/v1/rpc/generate_daily_recurring_transactions"

    def test_generate_recurring_failure(self, supabase, session):
        session.post.side_effect = requests.HTTPError("500")
        assert supabase.generate_recurring_transactions() is None


def test_merge_categories_ignores_unknown_types():
    merged = merge_categories([{"name": "轉帳", "type": "transfer"}], [])
    assert merged == {"expense": [], "income": []}


# ==================== Cloudinary ====================

def _png_bytes(width: int, height: int) -> bytes:
    output = io.BytesIO()
    Image.new("RGBA", (width, height), (255, 0, 0, 128)).save(output, format="PNG")
    return output.getvalue()


class TestAssetHost:

    def test_sign_params(self):
        params = {"timestamp": 1700000000, "folder": "line-bot-uploads", "public_id": "p"}
        expected = hashlib.sha1(
            b"folder=line-bot-uploads&public_id=p&timestamp=1700000000secret"
        ).hexdigest()
        assert sign_params(params, "secret") == expected

    def test_compress_large_image(self):
        compressed = compress_image(_png_bytes(3200, 100), max_width=1600)
        image = Image.open(io.BytesIO(compressed))
        assert image.format == "JPEG"
        assert image.size == (1600, 50)

    def test_compress_invalid_image_returns_original(self):
        assert compress_image(b"not an image") == b"not an image"

    def test_upload(self, session):
        session.post.return_value = make_http_response({"secure_url": "https://res.cloudinary.com/x.jpg"})
        host = AssetHost(cloud_name="demo", api_key="k", api_secret="s", session=session)

        assert host.upload_image(_png_bytes(10, 10)) == "https://res.cloudinary.com/x.jpg"

        args, kwargs = session.post.call_args
        assert args[0] == "https://api.cloudinary.com/v1_1/demo/auto/upload"
        data = kwargs["data"]
        assert data["folder"] == "line-bot-uploads"
        assert data["api_key"] == "k"
        assert data["public_id"].startswith("line_image_")
        unsigned = {k: v for k, v in data.items() if k not in ("api_key", "signature")}
        assert data["signature"] == sign_params(unsigned, "s")

    def test_upload_failure(self, session):
        session.post.side_effect = requests.ConnectionError("down")
        host = AssetHost(cloud_name="demo", api_key="k", api_secret="s", session=session)

        with pytest.raises(AssetUploadError):
            host.upload_image(b"img")

    def test_not_configured(self, session):
        host = AssetHost(cloud_name="demo", api_key="k", api_secret="s", session=session)
        host.api_secret = ""
        with pytest.raises(AssetUploadError):
            host.upload_image(b"img")


# ==================== OpenAI transcription ====================

class TestTranscriptionClient:

    def test_transcribe(self):
        openai_client = Mock()
        openai_client.audio.transcriptions.create.return_value = " 午餐 120 \n"
        client = TranscriptionClient(client=openai_client, model="gpt-4o-transcribe", language="zh")

        assert client.transcribe(b"audio", "U1") == "午餐 120"

        kwargs = openai_client.audio.transcriptions.create.call_args.kwargs
        filename, data, mime = kwargs["file"]
        assert filename.startswith("audio_U1_") and filename.endswith(".m4a")
        assert data == b"audio"
        assert mime == "audio/m4a"
        assert kwargs["response_format"] == "text"
        assert kwargs["language"] == "zh"

    def test_object_response(self):
        openai_client = Mock()
        openai_client.audio.transcriptions.create.return_value = Mock(text="晚餐 200")
        assert TranscriptionClient(client=openai_client).transcribe(b"a", "U1") == "晚餐 200"

    def test_api_error(self):
        openai_client = Mock()
        openai_client.audio.transcriptions.create.side_effect = OpenAIError("quota")
        with pytest.raises(TranscriptionError):
            TranscriptionClient(client=openai_client).transcribe(b"a", "U1")
