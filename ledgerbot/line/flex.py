# -*- coding: utf-8 -*-
"""
LINE Flex Message builders

以 dict 組出 Flex 元件（格式即 LINE Messaging API 的 JSON）。
只填入有指定的屬性，None 一律省略。
"""

from typing import Any, Optional


def _compact(component: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in component.items() if v is not None}


def text(
    value: str,
    *,
    size: Optional[str] = None,
    color: Optional[str] = None,
    weight: Optional[str] = None,
    align: Optional[str] = None,
    wrap: Optional[bool] = None,
    flex: Optional[int] = None,
    margin: Optional[str] = None,
    gravity: Optional[str] = None,
    **extra: Any,
) -> dict[str, Any]:
    """Flex text 元件"""
    return _compact({
        "type": "text",
        "text": value,
        "size": size,
        "color": color,
        "weight": weight,
        "align": align,
        "wrap": wrap,
        "flex": flex,
        "margin": margin,
        "gravity": gravity,
        **extra,
    })


def box(
    layout: str,
    contents: list[dict[str, Any]],
    *,
    flex: Optional[int] = None,
    margin: Optional[str] = None,
    spacing: Optional[str] = None,
    **extra: Any,
) -> dict[str, Any]:
    """Flex box 元件（layout: vertical / horizontal / baseline）"""
    return _compact({
        "type": "box",
        "layout": layout,
        "contents": contents,
        "flex": flex,
        "margin": margin,
        "spacing": spacing,
        **extra,
    })


def separator(margin: Optional[str] = "md", color: Optional[str] = None) -> dict[str, Any]:
    return _compact({"type": "separator", "margin": margin, "color": color})


def filler_cell(flex: int = 1) -> dict[str, Any]:
    """透明佔位格，讓不滿一列的格子維持對齊"""
    return box("vertical", [], flex=flex, backgroundColor="#00000000")


def bubble(
    body: dict[str, Any],
    *,
    footer: Optional[dict[str, Any]] = None,
    size: Optional[str] = None,
    **extra: Any,
) -> dict[str, Any]:
    return _compact({"type": "bubble", "size": size, "body": body, "footer": footer, **extra})


def carousel(bubbles: list[dict[str, Any]]) -> dict[str, Any]:
    return {"type": "carousel", "contents": bubbles}


def uri_button(label: str, uri: str, *, color: Optional[str] = None, style: str = "link") -> dict[str, Any]:
    return _compact({
        "type": "button",
        "style": style,
        "height": "sm",
        "color": color,
        "action": {"type": "uri", "label": label, "uri": uri},
    })


def chunk_rows(items: list[Any], size: int = 3) -> list[list[Any]]:
    """
    將 items 每 size 個分成一列

    Examples:
        >>> chunk_rows([1, 2, 3, 4], 3)
        [[1, 2, 3], [4]]
    """
    return [items[i:i + size] for i in range(0, len(items), size)]


def flex_message(alt_text: str, contents: dict[str, Any]) -> dict[str, Any]:
    """包成 LINE flex message"""
    return {"type": "flex", "altText": alt_text, "contents": contents}


def text_message(value: str) -> dict[str, Any]:
    return {"type": "text", "text": value}
