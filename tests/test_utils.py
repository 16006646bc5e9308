from __future__ import annotations

from typing import Any, Iterator
from unittest.mock import Mock

from linebot.v3.webhooks import MessageEvent, TextMessageContent


def iter_components(node: Any) -> Iterator[dict]:
    """Walk a Flex tree depth-first, yielding every component dict."""
    if isinstance(node, dict):
        yield node
        for key in ("header", "hero", "body", "footer"):
            if key in node:
                yield from iter_components(node[key])
        contents = node.get("contents")
        if isinstance(contents, list):
            for child in contents:
                yield from iter_components(child)
    elif isinstance(node, list):
        for child in node:
            yield from iter_components(child)


def flex_texts(node: Any) -> list[str]:
    return [c["text"] for c in iter_components(node) if c.get("type") == "text"]


def make_line_client(*, reply_ok: bool = True, push_ok: bool = True, content: bytes = b"data") -> Mock:
    client = Mock()
    client.show_loading.return_value = True
    client.get_content.return_value = content
    client.reply.return_value = reply_ok
    client.push.return_value = push_ok
    client.send.return_value = 1
    return client


def make_dify_client(answer: str = "好的") -> Mock:
    client = Mock()
    client.send.return_value = answer
    return client


def make_http_response(payload: object = None, status_code: int = 200, content: bytes = b"{}") -> Mock:
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    response.content = content
    response.raise_for_status.return_value = None
    return response


def make_text_event(text: str, *, event_id: str = "evt-1", user_id: str = "U123", reply_token: str = "rt-1"):
    event = Mock(spec=MessageEvent)
    event.webhook_event_id = event_id
    event.reply_token = reply_token
    event.source = Mock(user_id=user_id)
    event.message = Mock(spec=TextMessageContent)
    event.message.text = text
    event.message.id = f"msg-{event_id}"
    return event


def make_media_event(content_class: type, *, event_id: str = "evt-media", user_id: str = "U123", reply_token: str = "rt-2"):
    event = Mock(spec=MessageEvent)
    event.webhook_event_id = event_id
    event.reply_token = reply_token
    event.source = Mock(user_id=user_id)
    event.message = Mock(spec=content_class)
    event.message.id = f"msg-{event_id}"
    return event
