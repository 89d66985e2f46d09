"""探测器基类"""

import time
from abc import ABC, abstractmethod
from typing import Dict, Any

from ..models.health_check import ProbeOutcome
from ..utils.log_manager import get_logger

DEFAULT_TIMEOUT_MS = 10000


class BaseHealthChecker(ABC):
    """探测器抽象基类

    对目标服务执行一次探测，返回 ProbeOutcome。传输层失败不抛异常，
    以 ok=False 的结果返回。
    """

    def __init__(self, name: str, config: Dict[str, Any]):
        """
        初始化探测器

        Args:
            name: 服务标识
            config: 服务配置参数
        """
        self.name = name
        self.config = config
        self.service_type = config.get('type', 'unknown')
        self.logger = get_logger(f'checker.{self.service_type}.{self.name}')

    @abstractmethod
    async def probe(self) -> ProbeOutcome:
        """
        执行一次探测

        Returns:
            ProbeOutcome: 原始探测结果
        """
        pass

    @abstractmethod
    def validate_config(self) -> bool:
        """
        验证配置参数是否有效

        Returns:
            bool: 配置是否有效
        """
        pass

    def get_timeout_ms(self) -> int:
        """请求超时时间（毫秒），未配置时使用严重阈值"""
        return self.config.get('timeout_ms',
                               self.config.get('response_time_critical_ms', DEFAULT_TIMEOUT_MS))

    def build_url(self, path: str) -> str:
        """拼接服务基础URL与路径"""
        base_url = self.config['url'].rstrip('/')
        if not path:
            return base_url
        return f"{base_url}/{path.lstrip('/')}"

    @staticmethod
    def elapsed_ms(start_time: float) -> int:
        """从 start_time（time.monotonic）到现在经过的毫秒数"""
        return int((time.monotonic() - start_time) * 1000)
