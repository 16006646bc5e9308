from __future__ import annotations

import os
from pathlib import Path

import pytest

# api/webhook.py refuses to import without these
for _name, _value in {
    "LINE_CHANNEL_ACCESS_TOKEN": "test-access-token",
    "LINE_CHANNEL_SECRET": "test-channel-secret",
    "DIFY_API_URL": "https://dify.test/v1/chat-messages",
    "DIFY_API_KEY": "test-dify-key",
}.items():
    os.environ.setdefault(_name, _value)


def _top_level_tests_group(path: Path) -> str | None:
    parts = path.parts
    try:
        tests_index = parts.index("tests")
    except ValueError:
        return None
    if tests_index + 1 >= len(parts):
        return None
    return parts[tests_index + 1]


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    for item in items:
        group = _top_level_tests_group(Path(str(item.fspath)))
        if group == "unit":
            item.add_marker(pytest.mark.unit)
        elif group == "integration":
            item.add_marker(pytest.mark.integration)
