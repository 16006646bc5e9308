# -*- coding: utf-8 -*-
"""
Image Asset Host (Cloudinary upload API)

使用者傳來的圖片先壓縮，再以簽章上傳到 Cloudinary，
取得公開網址交給 Dify 分析。
"""

import hashlib
import io
import logging
import time
from typing import Optional

import requests
from PIL import Image, UnidentifiedImageError

from ledgerbot.config import (
    CLOUDINARY_API_KEY,
    CLOUDINARY_API_SECRET,
    CLOUDINARY_CLOUD_NAME,
    HTTP_TIMEOUT,
)

logger = logging.getLogger(__name__)

UPLOAD_URL = "https://api.cloudinary.com/v1_1/{cloud_name}/auto/upload"
UPLOAD_FOLDER = "line-bot-uploads"


class AssetUploadError(Exception):
    """圖片上傳失敗"""
    pass


def compress_image(image_data: bytes, max_width: int = 1600, quality: int = 85) -> bytes:
    """
    壓縮圖片（寬度超過 max_width 時等比縮小，轉為 JPEG）

    圖片無法解析時回傳原圖。
    """
    try:
        img = Image.open(io.BytesIO(image_data))
        original_width, original_height = img.size

        if original_width > max_width:
            ratio = max_width / original_width
            img = img.resize((max_width, int(original_height * ratio)), Image.Resampling.LANCZOS)
            logger.info(f"調整圖片尺寸：{original_width}x{original_height} -> {img.size[0]}x{img.size[1]}")

        if img.mode != 'RGB':
            img = img.convert('RGB')

        output = io.BytesIO()
        img.save(output, format='JPEG', quality=quality, optimize=True)
        compressed_data = output.getvalue()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.warning(f"圖片壓縮失敗，使用原圖：{e}")
        return image_data

    logger.info(f"圖片壓縮：{len(image_data)} -> {len(compressed_data)} bytes")
    return compressed_data


def sign_params(params: dict, api_secret: str) -> str:
    """
    Cloudinary 上傳簽章：參數依 key 排序後以 & 串接，加上 secret 取 SHA-1

    Examples:
        >>> sign_params({"timestamp": 1, "folder": "a"}, "s") == hashlib.sha1(b"folder=a&timestamp=1s").hexdigest()
        True
    """
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params) if params[key] not in (None, ""))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class AssetHost:
    """Cloudinary 圖片上傳"""

    def __init__(
        self,
        cloud_name: Optional[str] = None,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: int = HTTP_TIMEOUT,
    ):
        self.cloud_name = cloud_name or CLOUDINARY_CLOUD_NAME
        self.api_key = api_key or CLOUDINARY_API_KEY
        self.api_secret = api_secret or CLOUDINARY_API_SECRET
        self.session = session or requests.Session()
        self.timeout = timeout

    def upload_image(self, image_data: bytes) -> str:
        """
        上傳圖片

        Returns:
            str: 圖片公開網址（secure_url）

        Raises:
            AssetUploadError: 未設定帳號或上傳失敗
        """
        if not (self.cloud_name and self.api_key and self.api_secret):
            raise AssetUploadError("Cloudinary 未設定")

        timestamp = int(time.time())
        params = {
            "access_mode": "public",
            "folder": UPLOAD_FOLDER,
            "overwrite": "true",
            "public_id": f"line_image_{int(time.time() * 1000)}",
            "timestamp": timestamp,
        }
        data = dict(params, api_key=self.api_key, signature=sign_params(params, self.api_secret))
        files = {"file": ("image.jpg", compress_image(image_data), "image/jpeg")}

        logger.info("Uploading image to Cloudinary...")
        try:
            response = self.session.post(
                UPLOAD_URL.format(cloud_name=self.cloud_name),
                data=data,
                files=files,
                timeout=self.timeout,
            )
            response.raise_for_status()
            secure_url = response.json().get("secure_url")
        except requests.RequestException as e:
            logger.error(f"Error uploading to Cloudinary: {e}")
            raise AssetUploadError(f"圖片上傳失敗: {e}") from e
        except ValueError as e:
            raise AssetUploadError(f"Cloudinary 回應格式錯誤: {e}") from e

        if not secure_url:
            raise AssetUploadError("Cloudinary 沒有回傳 secure_url")

        logger.info(f"Image uploaded to Cloudinary: {secure_url}")
        return secure_url
