"""RAG流水线探测器"""

import asyncio
import json
import time
from typing import Dict, Any

import aiohttp

from .base import BaseHealthChecker
from .factory import register_checker
from ..models.health_check import ProbeOutcome


@register_checker('rag_pipeline')
class RagPipelineHealthChecker(BaseHealthChecker):
    """RAG流水线探测器

    先请求 /health 确认Python服务存活，再请求根路径确认 LlamaIndex
    blueprints 已加载。服务存活但 blueprints 未加载时返回 content_ok=False。
    """

    def validate_config(self) -> bool:
        url = self.config.get('url')
        if not isinstance(url, str) or not url.startswith(('http://', 'https://')):
            return False

        timeout_ms = self.get_timeout_ms()
        return isinstance(timeout_ms, int) and timeout_ms > 0

    async def probe(self) -> ProbeOutcome:
        """
        执行RAG流水线探测

        Returns:
            ProbeOutcome: 原始探测结果
        """
        timeout = aiohttp.ClientTimeout(total=self.get_timeout_ms() / 1000)
        health_url = self.build_url(self.config.get('health_path', '/health'))
        start_time = time.monotonic()
        metadata: Dict[str, Any] = {
            'basic_health': False,
            'llama_index_available': False
        }

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(health_url) as response:
                    status = response.status
                elapsed_ms = self.elapsed_ms(start_time)

                if status >= 500:
                    return ProbeOutcome(ok=False, status_code=status, elapsed_ms=elapsed_ms,
                                        error_text=f"HTTP {status}", metadata=metadata)

                metadata['basic_health'] = status < 400
                if metadata['basic_health']:
                    metadata.update(await self._check_llama_index(session))

        except asyncio.TimeoutError:
            return ProbeOutcome(ok=False, elapsed_ms=self.elapsed_ms(start_time),
                                error_text='timeout', metadata=metadata)
        except aiohttp.ClientError as e:
            return ProbeOutcome(ok=False, elapsed_ms=self.elapsed_ms(start_time),
                                error_text=str(e) or e.__class__.__name__,
                                metadata=metadata)

        error_text = None
        if metadata['basic_health'] and not metadata['llama_index_available']:
            error_text = 'LlamaIndex blueprints 未加载'

        return ProbeOutcome(
            ok=True,
            status_code=status,
            elapsed_ms=elapsed_ms,
            error_text=error_text,
            content_ok=metadata['llama_index_available'],
            metadata=metadata
        )

    async def _check_llama_index(self, session: aiohttp.ClientSession) -> Dict[str, Any]:
        """请求根路径，读取 blueprints_loaded 标志

        该请求失败只影响 LlamaIndex 可用性，不算服务不可达，
        响应时间也不计入（沿用 /health 的耗时）。
        """
        try:
            async with session.get(self.build_url('/')) as response:
                if response.status != 200:
                    return {'llama_index_available': False}
                data = json.loads(await response.text())
        except (aiohttp.ClientError, asyncio.TimeoutError, json.JSONDecodeError) as e:
            self.logger.warning(f"LlamaIndex 检查失败: {e}")
            return {'llama_index_available': False}

        if not isinstance(data, dict):
            return {'llama_index_available': False}

        return {
            'llama_index_available': data.get('blueprints_loaded') is True,
            'blueprints_loaded': data.get('blueprints_loaded'),
            'service': data.get('service')
        }
