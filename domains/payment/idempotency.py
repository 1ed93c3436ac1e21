import logging
import threading
from datetime import timedelta
from typing import Set

from redis import Redis

logger = logging.getLogger(__name__)


class IdempotencyGuard:
    """
    should_process(order_id) is True exactly once per order_id.
    Check and mark happen in one atomic step.
    """

    def should_process(self, order_id: str) -> bool:
        raise NotImplementedError


class InMemoryIdempotencyGuard(IdempotencyGuard):
    # 只活在這個 process 裡，重啟就忘光
    def __init__(self) -> None:
        self._seen: Set[str] = set()
        self._lock = threading.Lock()

    def should_process(self, order_id: str) -> bool:
        with self._lock:
            if order_id in self._seen:
                return False
            self._seen.add(order_id)
            return True


class RedisIdempotencyGuard(IdempotencyGuard):
    def __init__(
        self,
        client: "Redis[str]",
        ttl: timedelta = timedelta(days=30),
        prefix: str = "processed:",
    ) -> None:
        self.client = client
        self.ttl = ttl
        self.prefix = prefix

    def should_process(self, order_id: str) -> bool:
        lock_key = f"{self.prefix}{order_id}"
        # 如果 key 不存在 -> 寫入成功，回傳 True -> 代表我是第一個
        # 如果 key 已存在 -> 寫入失敗，回傳 None -> 代表有人搶先了
        is_first = self.client.set(lock_key, "1", nx=True, ex=self.ttl)
        if not is_first:
            logger.info(f" ♻️ [Redis] Order {order_id} already processed. Skipping.")
            return False
        return True
