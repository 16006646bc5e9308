# -*- coding: utf-8 -*-
"""
Tutorial cards (ledgerbot/templates/tutorial.yaml)
"""

import logging
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

TUTORIAL_PATH = Path(__file__).resolve().parents[1] / "templates" / "tutorial.yaml"
TUTORIAL_FALLBACK_TEXT = "無法顯示教學文檔。請重新嘗試或聯繫客服。"


def load_tutorial_cards(path: Optional[Path] = None) -> Optional[list[dict]]:
    """
    讀取教學卡片

    Returns:
        Flex bubble 列表；檔案不存在或格式錯誤時回傳 None
    """
    path = path or TUTORIAL_PATH
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error loading tutorial cards: {e}")
        return None

    parts = data.get("parts") if isinstance(data, dict) else None
    if not parts or not all(isinstance(part, dict) for part in parts):
        logger.error(f"Tutorial file {path} has no valid parts")
        return None

    logger.info(f"Loaded {len(parts)} tutorial card(s)")
    return parts
