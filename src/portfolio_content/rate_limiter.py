"""
Rate Limiter
Notion API 호출 사이의 고정 최소 지연 (초당 약 3회)
"""

import time
from typing import Callable

from portfolio_content.config import REQUEST_INTERVAL_MS


class RateLimiter:
    """고정 간격 대기 (토큰 버킷이나 버스트 없음)"""

    def __init__(self, interval_ms: int = REQUEST_INTERVAL_MS,
                 sleep: Callable[[float], None] = time.sleep):
        self.interval_ms = interval_ms
        self._sleep = sleep

    def wait(self, milliseconds: int) -> None:
        """최소 `milliseconds` 동안 대기"""
        if milliseconds > 0:
            self._sleep(milliseconds / 1000.0)

    def throttle(self) -> None:
        """API 호출 전 설정된 간격만큼 대기"""
        self.wait(self.interval_ms)
