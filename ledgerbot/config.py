"""
Environment configuration module
Loads all environment variables and shared constants.
"""

import os
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

# Load .env file (for local development)
load_dotenv()

# Required environment variables
LINE_CHANNEL_ACCESS_TOKEN = os.getenv('LINE_CHANNEL_ACCESS_TOKEN')
LINE_CHANNEL_SECRET = os.getenv('LINE_CHANNEL_SECRET')
DIFY_API_URL = os.getenv('DIFY_API_URL')
DIFY_API_KEY = os.getenv('DIFY_API_KEY')

# Optional environment variables (with defaults)
DIFY_APP_ID = os.getenv('DIFY_APP_ID', '')
DIFY_TIMEOUT = int(os.getenv('DIFY_TIMEOUT', '60'))
HTTP_TIMEOUT = int(os.getenv('HTTP_TIMEOUT', '10'))

OPENAI_API_KEY = os.getenv('OPENAI_API_KEY', '')
TRANSCRIBE_MODEL = os.getenv('TRANSCRIBE_MODEL', 'gpt-4o-transcribe')
TRANSCRIBE_LANGUAGE = os.getenv('TRANSCRIBE_LANGUAGE', 'zh')

CLOUDINARY_CLOUD_NAME = os.getenv('CLOUDINARY_CLOUD_NAME', '')
CLOUDINARY_API_KEY = os.getenv('CLOUDINARY_API_KEY', '')
CLOUDINARY_API_SECRET = os.getenv('CLOUDINARY_API_SECRET', '')

SUPABASE_URL = os.getenv('SUPABASE_URL', '')
SUPABASE_KEY = os.getenv('SUPABASE_KEY', '')
SUPABASE_TIMEOUT = int(os.getenv('SUPABASE_TIMEOUT', '10'))

# LIFF app used by the "edit record" button on transaction cards
LIFF_ID = os.getenv('LIFF_ID', '')

# Redis (optional, shared state for multi-instance deployments)
REDIS_URL = os.getenv('REDIS_URL', '')
KV_ENABLED = bool(REDIS_URL)

# Admin push mode
ADMIN_USER_ID = os.getenv('ADMIN_USER_ID', '')
ADMIN_TARGET_USER_ID = os.getenv('ADMIN_TARGET_USER_ID', '')

# Scheduled recurring-transaction job
CRON_SECRET = os.getenv('CRON_SECRET', '')

TIMEZONE = ZoneInfo('Asia/Taipei')

# Webhook event dedup window (5 minutes)
EVENT_EXPIRY_SECONDS = 60 * 5

# LINE platform limits
MAX_MESSAGES_PER_REQUEST = 5
MAX_CONTENT_BYTES = 10 * 1024 * 1024  # 10MB
LOADING_SECONDS = 30

QUICK_REPLY_ITEMS = [
    {
        "type": "action",
        "imageUrl": "https://res.cloudinary.com/dt7pnivs1/image/upload/v1742467030/11_jhqvhe.png",
        "action": {
            "type": "uri",
            "label": "明細",
            "uri": "https://liff.line.me/2007052419-6KyqOAoX",
        },
    },
    {
        "type": "action",
        "imageUrl": "https://res.cloudinary.com/dt7pnivs1/image/upload/v1742467013/22_fnlufx.png",
        "action": {
            "type": "uri",
            "label": "分析",
            "uri": "https://liff.line.me/2007052419-Br7KNJxo",
        },
    },
    {
        "type": "action",
        "imageUrl": "https://res.cloudinary.com/dt7pnivs1/image/upload/v1742467019/33_s7tz7c.png",
        "action": {
            "type": "uri",
            "label": "我的",
            "uri": "https://liff.line.me/2007052419-mWakO8RW",
        },
    },
]

# Sender persona used when the user mentions "Cony"
CONY_SENDER = {
    "name": "Cony",
    "iconUrl": "https://gcp-obs.line-scdn.net/0hERW2_cUbGn1qSwoc-HdlKlMdFgxZLw97BDMBHEYfTUxHKUEjVHhWB0pMQUpbKw58UzEFGk5OQkRFe1p4VS8",
}

# Required variables for the webhook entry point
_REQUIRED_VARS = {
    'LINE_CHANNEL_ACCESS_TOKEN': LINE_CHANNEL_ACCESS_TOKEN,
    'LINE_CHANNEL_SECRET': LINE_CHANNEL_SECRET,
    'DIFY_API_URL': DIFY_API_URL,
    'DIFY_API_KEY': DIFY_API_KEY,
}


def missing_required_settings() -> list[str]:
    """Return the names of required environment variables that are not set."""
    return [var_name for var_name, var_value in _REQUIRED_VARS.items() if not var_value]
