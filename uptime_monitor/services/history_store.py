"""历史记录存储模块

按服务保存最近N次检查结果（FIFO环形缓冲），为状态变化检测提供前后两次结果
"""

import logging
from collections import deque
from datetime import datetime
from typing import Deque, Dict, List, Optional, Tuple, Any

from ..models.health_check import CheckResult

DEFAULT_HISTORY_SIZE = 24


class HistoryStore:
    """检查结果历史存储

    每个服务一个容量固定的序列，最旧的在前。非线程安全，
    由调度器保证每个周期内单写者访问。
    """

    def __init__(self, capacity: int = DEFAULT_HISTORY_SIZE):
        """初始化历史存储

        Args:
            capacity: 每个服务保留的最大记录数，至少为2
        """
        if capacity < 2:
            raise ValueError("历史记录容量必须不小于2")

        self.capacity = capacity
        self._histories: Dict[str, Deque[CheckResult]] = {}
        self.logger = logging.getLogger(__name__)

    def append(self, service_id: str, result: CheckResult):
        """追加检查结果，超出容量时淘汰最旧的一条

        Args:
            service_id: 服务标识
            result: 检查结果
        """
        history = self._histories.get(service_id)
        if history is None:
            history = deque(maxlen=self.capacity)
            self._histories[service_id] = history
            self.logger.debug(f"创建服务 {service_id} 的历史记录")

        history.append(result)

    def latest(self, service_id: str) -> Optional[CheckResult]:
        """获取最近一次检查结果，未知服务返回None"""
        history = self._histories.get(service_id)
        if not history:
            return None
        return history[-1]

    def latest_two(self, service_id: str) -> Tuple[Optional[CheckResult], Optional[CheckResult]]:
        """获取 (上一次, 最近一次) 检查结果

        Returns:
            未知服务返回 (None, None)，只有一条记录时上一次为None
        """
        history = self._histories.get(service_id)
        if not history:
            return None, None
        if len(history) == 1:
            return None, history[-1]
        return history[-2], history[-1]

    def get_history(self, service_id: str) -> List[CheckResult]:
        """获取服务的历史记录副本，最旧的在前"""
        return list(self._histories.get(service_id, ()))

    def service_ids(self) -> List[str]:
        """获取有历史记录的服务列表"""
        return list(self._histories.keys())

    def get_health_summary(self) -> Dict[str, Any]:
        """根据每个服务最近一次结果生成健康概要

        failures 统计最近一次结果为 critical 的服务，包括不可达和严重缓慢；
        返回4xx等非 critical 的异常只影响整体 healthy 标志。

        Returns:
            包含各服务最新状态和整体统计的字典
        """
        summary = {
            'timestamp': datetime.now().isoformat(),
            'services': {},
            'overall': {'healthy': True, 'warnings': 0, 'failures': 0}
        }

        for service_id in self._histories:
            latest = self.latest(service_id)
            if latest is None:
                continue

            summary['services'][service_id] = {
                'healthy': latest.healthy,
                'warning': latest.warning,
                'critical': latest.critical,
                'status': latest.status,
                'response_time_ms': latest.response_time_ms,
                'last_check': latest.timestamp.isoformat()
            }

            if not latest.healthy:
                summary['overall']['healthy'] = False
            if latest.warning:
                summary['overall']['warnings'] += 1
            if latest.critical:
                summary['overall']['failures'] += 1

        return summary

    def get_service_stats(self, service_id: str) -> Dict[str, Any]:
        """获取服务统计信息

        Args:
            service_id: 服务标识

        Returns:
            服务统计信息字典，无记录时返回空字典
        """
        history = self._histories.get(service_id)
        if not history:
            return {}

        total_checks = len(history)
        healthy_checks = sum(1 for r in history if r.healthy)
        response_times = [r.response_time_ms for r in history
                          if r.response_time_ms is not None]

        return {
            'service_id': service_id,
            'total_checks': total_checks,
            'healthy_checks': healthy_checks,
            'unhealthy_checks': total_checks - healthy_checks,
            'warning_checks': sum(1 for r in history if r.warning),
            'health_rate': healthy_checks / total_checks,
            'avg_response_time_ms': (sum(response_times) / len(response_times)
                                     if response_times else 0),
            'latest_check': history[-1]
        }
