# -*- coding: utf-8 -*-
"""
Vercel Serverless Function - LINE Bot Webhook Entry Point

This module handles:
1. Receive Webhook POST requests from LINE Platform
2. Validate X-Line-Signature and parse events
3. Dispatch events (dedup → Dify → Flex reply)
4. Return 200 OK to LINE (required for webhook acknowledgment)
"""

import sys
from pathlib import Path

# Add project root to sys.path for local development
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import logging
from flask import Flask, request, abort
from linebot.v3 import WebhookParser
from linebot.v3.exceptions import InvalidSignatureError

from ledgerbot.config import LINE_CHANNEL_SECRET, missing_required_settings
from ledgerbot.line.admin import AdminController
from ledgerbot.line_handler import EventDispatcher
from ledgerbot.services.asset_host import AssetHost
from ledgerbot.services.data_store import SupabaseStore
from ledgerbot.services.dify_client import DifyClient
from ledgerbot.services.kv_store import get_kv_store
from ledgerbot.services.line_client import LineClient
from ledgerbot.services.transcription import TranscriptionClient

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

missing_vars = missing_required_settings()
if missing_vars:
    raise ValueError(f"Missing required environment variables: {', '.join(missing_vars)}")

# Initialize Flask app
app = Flask(__name__)

# Global variables for lazy initialization (Vercel serverless requirement)
_parser = None
_dispatcher = None


def get_parser():
    """Get or initialize Webhook Parser (lazy initialization)"""
    global _parser
    if _parser is None:
        logger.info("Initializing WebhookParser")
        _parser = WebhookParser(LINE_CHANNEL_SECRET)
    return _parser


def get_dispatcher():
    """Get or initialize the event dispatcher and its clients (lazy initialization)"""
    global _dispatcher
    if _dispatcher is None:
        logger.info("Initializing EventDispatcher")
        kv_store = get_kv_store()
        line_client = LineClient()
        _dispatcher = EventDispatcher(
            line_client=line_client,
            dify_client=DifyClient(kv_store),
            kv_store=kv_store,
            store=SupabaseStore(),
            asset_host=AssetHost(),
            transcriber=TranscriptionClient(),
            admin=AdminController(kv_store, line_client),
        )
    return _dispatcher


@app.route("/api/webhook", methods=['GET'])
def webhook_health():
    """Health check endpoint for GET requests"""
    return 'LINE Bot is running!', 200


@app.route("/health", methods=['GET'])
def health():
    return {"status": "ok"}, 200


@app.route("/api/webhook", methods=['POST'])
def webhook():
    """
    LINE Webhook entry function

    Handles POST requests from LINE Platform.
    Validates signature and delegates to the dispatcher for processing.

    Returns:
        str: Always returns 'OK' to acknowledge receipt to LINE
    """
    # Get signature
    signature = request.headers.get('X-Line-Signature')
    if not signature:
        logger.warning("Missing X-Line-Signature header")
        abort(400)

    # Get request body
    body = request.get_data(as_text=True)
    logger.info(f"Request body: {body}")

    # Validate signature
    try:
        events = get_parser().parse(body, signature)
    except InvalidSignatureError:
        logger.error("Invalid signature")
        abort(400)

    try:
        handled = get_dispatcher().handle_events(events)
        logger.info(f"Handled {handled}/{len(events)} event(s)")
    except Exception as e:
        # Even on error, return 200 to prevent LINE from retrying
        logger.error(f"Error handling webhook: {e}")

    return 'OK'


# Local development entry point
if __name__ == "__main__":
    app.run(debug=True, port=5000)
