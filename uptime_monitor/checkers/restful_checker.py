"""HTTP接口探测器"""

import asyncio
import time
from typing import Dict, Any

import aiohttp

from .base import BaseHealthChecker
from .factory import register_checker
from ..models.health_check import ProbeOutcome


@register_checker('restful')
class RestfulHealthChecker(BaseHealthChecker):
    """HTTP接口探测器

    对 url + health_path 发起一次GET。状态码小于500视为收到响应，
    5xx、超时和客户端错误视为传输层失败。
    """

    def validate_config(self) -> bool:
        url = self.config.get('url')
        if not isinstance(url, str) or not url.startswith(('http://', 'https://')):
            return False

        timeout_ms = self.get_timeout_ms()
        if not isinstance(timeout_ms, int) or timeout_ms <= 0:
            return False

        return isinstance(self.config.get('headers', {}), dict)

    @property
    def probe_url(self) -> str:
        return self.build_url(self.config.get('health_path', '/health'))

    async def probe(self) -> ProbeOutcome:
        """
        执行一次HTTP GET探测

        Returns:
            ProbeOutcome: 原始探测结果
        """
        timeout = aiohttp.ClientTimeout(total=self.get_timeout_ms() / 1000)
        headers = self.config.get('headers', {})
        start_time = time.monotonic()

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(self.probe_url, headers=headers) as response:
                    status = response.status
                    elapsed_ms = self.elapsed_ms(start_time)
                    metadata: Dict[str, Any] = {'url': self.probe_url}

                    if status >= 500:
                        return ProbeOutcome(
                            ok=False,
                            status_code=status,
                            elapsed_ms=elapsed_ms,
                            error_text=f"HTTP {status}",
                            metadata=metadata
                        )

                    return ProbeOutcome(
                        ok=True,
                        status_code=status,
                        elapsed_ms=elapsed_ms,
                        metadata=metadata
                    )

        except asyncio.TimeoutError:
            error_text = 'timeout'
        except aiohttp.ClientError as e:
            error_text = str(e) or e.__class__.__name__

        elapsed_ms = self.elapsed_ms(start_time)
        self.logger.debug(f"探测 {self.probe_url} 失败: {error_text} ({elapsed_ms}ms)")
        return ProbeOutcome(ok=False, elapsed_ms=elapsed_ms, error_text=error_text,
                            metadata={'url': self.probe_url})
