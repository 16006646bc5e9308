# -*- coding: utf-8 -*-
"""
KV Store Module (in-process / Redis)

Webhook 事件去重、使用者 Dify conversation_id、管理員 Push 模式旗標
都存在 KV store。單一實例時使用 InMemoryKVStore；設定 REDIS_URL 後改用
RedisKVStore，讓多個實例共用狀態。

兩者介面相同：get / set(ttl) / delete / sweep，值以 JSON 相容型別儲存。
"""

import json
import logging
import time
from typing import Any, Callable, Optional, Union

from redis import Redis, RedisError

from ledgerbot.config import KV_ENABLED, REDIS_URL

logger = logging.getLogger(__name__)


class InMemoryKVStore:
    """
    Process 內的 KV store（dict + 到期時間）

    到期的 key 在 get 時視為不存在，sweep() 會一次清掉所有到期 key。
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._data: dict[str, tuple[Any, Optional[float]]] = {}

    def _expired(self, expires_at: Optional[float]) -> bool:
        return expires_at is not None and expires_at <= self._clock()

    def get(self, key: str) -> Optional[Any]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._expired(expires_at):
            del self._data[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        expires_at = self._clock() + ttl if ttl else None
        self._data[key] = (value, expires_at)
        return True

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def sweep(self) -> int:
        """清除所有過期 key，回傳清除數量"""
        expired = [key for key, (_, expires_at) in self._data.items() if self._expired(expires_at)]
        for key in expired:
            del self._data[key]
        if expired:
            logger.info(f"Swept {len(expired)} expired key(s)")
        return len(expired)

    def __len__(self) -> int:
        return len(self._data)


class RedisKVStore:
    """
    Redis KV store

    Redis 會自行處理 TTL，所以 sweep() 不需要做任何事。
    """

    def __init__(self, client: Optional[Redis] = None):
        """
        Args:
            client: Redis client instance (if None, will try to create one)
        """
        self.client = client or get_kv_client()

    def get(self, key: str) -> Optional[Any]:
        if not self.client:
            return None

        try:
            value = self.client.get(key)
            if value is None:
                return None
            return json.loads(value)
        except (RedisError, ValueError) as e:
            logger.error(f"Failed to get key {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        if not self.client:
            return False

        try:
            json_value = json.dumps(value, ensure_ascii=False)
            if ttl:
                self.client.setex(key, ttl, json_value)
            else:
                self.client.set(key, json_value)
            return True
        except (RedisError, TypeError) as e:
            logger.error(f"Failed to set key {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        if not self.client:
            return False

        try:
            return bool(self.client.delete(key))
        except RedisError as e:
            logger.error(f"Failed to delete key {key}: {e}")
            return False

    def sweep(self) -> int:
        return 0


KVStore = Union[InMemoryKVStore, RedisKVStore]


def get_kv_client() -> Optional[Redis]:
    """
    取得 Redis 客戶端

    Returns:
        Redis 客戶端實例，若 Redis 未啟用則回傳 None
    """
    if not KV_ENABLED:
        logger.info("Redis not enabled, using in-process KV store")
        return None

    try:
        return Redis.from_url(REDIS_URL, decode_responses=True)
    except (RedisError, ValueError) as e:
        logger.error(f"Failed to create Redis client: {e}")
        return None


def get_kv_store() -> KVStore:
    """有設定 REDIS_URL 時回傳 RedisKVStore，否則回傳 InMemoryKVStore"""
    client = get_kv_client()
    if client is not None:
        logger.info("Using Redis KV store")
        return RedisKVStore(client)
    return InMemoryKVStore()
