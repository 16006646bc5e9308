# -*- coding: utf-8 -*-
"""
Vercel Cron Job - 每日固定收支

由 Vercel cron 每天呼叫一次，透過 Supabase RPC 產生當日的固定收支記錄。
請求需帶 Authorization: Bearer {CRON_SECRET}。
"""

import sys
from pathlib import Path

# Add project root to sys.path for local development
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import logging
from flask import Flask, jsonify, request

from ledgerbot import config
from ledgerbot.services.data_store import SupabaseStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = Flask(__name__)

_store = None


def get_store():
    """Get or initialize Supabase store (lazy initialization)"""
    global _store
    if _store is None:
        _store = SupabaseStore()
    return _store


def is_authorized(auth_header):
    return bool(config.CRON_SECRET) and auth_header == f"Bearer {config.CRON_SECRET}"


@app.route("/api/cron", methods=['GET'])
def generate_recurring():
    if not is_authorized(request.headers.get('Authorization')):
        logger.warning("Unauthorized cron request")
        return jsonify({"success": False, "message": "Unauthorized"}), 401

    logger.info("開始處理固定收支記錄")
    data = get_store().generate_recurring_transactions()
    if data is None:
        return jsonify({"success": False, "message": "固定收支記錄產生失敗"}), 500

    return jsonify({"success": True, "message": "固定收支記錄處理完成", "data": data}), 200


# Local development entry point
if __name__ == "__main__":
    app.run(debug=True, port=5001)
