"""告警管理器"""

import asyncio
import logging
from typing import Dict, List, Any, Optional

from .base import BaseAlerter
from .http_alerter import HTTPAlerter
from .teams_alerter import TeamsAlerter
from ..models.health_check import (
    AlertMessage, CheckResult, TickSummary, TransitionEvent, TransitionKind
)
from ..utils.exceptions import AlertConfigError

ALERTER_TYPES = {
    'teams': TeamsAlerter,
    'http': HTTPAlerter,
}


def _status_entry(result: CheckResult) -> Dict[str, Any]:
    return {
        'healthy': result.healthy,
        'warning': result.warning,
        'response_time_ms': result.response_time_ms,
        'error_text': result.error_text
    }


class AlertManager:
    """告警管理器，负责管理告警器、构造告警消息并投递"""

    def __init__(self, alert_configs: Optional[List[Dict[str, Any]]] = None):
        """
        初始化告警管理器

        Args:
            alert_configs: 告警配置列表
        """
        self.alerters: List[BaseAlerter] = []
        self.logger = logging.getLogger(__name__)

        for config in alert_configs or []:
            self.add_alerter(self.create_alerter(config))

    @staticmethod
    def create_alerter(config: Dict[str, Any]) -> BaseAlerter:
        """
        根据配置创建告警器

        Raises:
            AlertConfigError: 类型不支持或配置无效
        """
        alerter_type = str(config.get('type', '')).lower()
        alerter_class = ALERTER_TYPES.get(alerter_type)
        if alerter_class is None:
            raise AlertConfigError(f"不支持的告警器类型: {alerter_type}",
                                   alert_name=config.get('name'))

        return alerter_class(config.get('name', alerter_type), config)

    def add_alerter(self, alerter: BaseAlerter):
        """
        添加告警器

        Args:
            alerter: 告警器实例
        """
        if not isinstance(alerter, BaseAlerter):
            raise AlertConfigError(f"告警器必须继承自BaseAlerter: {type(alerter)}")

        self.alerters.append(alerter)
        self.logger.info(f"已添加告警器: {alerter.name} ({alerter.alerter_type})")

    def create_transition_message(self, event: TransitionEvent,
                                  warning_threshold_ms: Optional[int] = None) -> AlertMessage:
        """
        根据状态变化事件创建告警消息

        Args:
            event: 状态变化事件
            warning_threshold_ms: 慢响应阈值，用于性能告警描述

        Returns:
            AlertMessage: 告警消息
        """
        service_id = event.service_id
        current = event.current
        severity = event.kind.severity

        if event.kind is TransitionKind.WENT_DOWN and 'llama_index_available' in current.metadata:
            # RAG流水线：区分服务不可达与 blueprints 未加载
            title = '🚨 RAG流水线告警'
            if current.metadata.get('basic_health'):
                text = f"{service_id} 服务在线，但 LlamaIndex blueprints 未加载"
            else:
                text = f"{service_id} 当前不可用: {current.error_text or '服务不可达'}"
            action = '检查Python服务、GPU资源以及LlamaIndex是否可用'
            severity = 'error'
        elif event.kind is TransitionKind.WENT_DOWN:
            title = '🚨 服务宕机告警'
            text = f"{service_id} 当前不可用: {current.error_text or '服务不可达'}"
            action = f"检查 {service_id} 的运行状态，必要时重启服务"
        elif event.kind is TransitionKind.RECOVERED:
            title = '✅ 服务已恢复'
            text = f"{service_id} 已恢复正常"
            action = '持续关注服务稳定性'
        else:
            title = '⚠️ 性能告警'
            text = f"{service_id} 响应缓慢: {current.response_time_ms}ms"
            if warning_threshold_ms is not None:
                text += f" (阈值: {warning_threshold_ms}ms)"
            action = f"关注 {service_id} 的性能，持续变慢时排查原因"

        return AlertMessage(
            title=title,
            message=text,
            status=event.kind.status,
            severity=severity,
            service_name=service_id,
            timestamp=current.timestamp,
            error_message=current.error_text,
            response_time_ms=current.response_time_ms,
            action=action,
            services={service_id: _status_entry(current)},
            metadata={
                'previous_healthy': event.previous.healthy,
                'current_healthy': current.healthy,
                'previous_warning': event.previous.warning,
                'current_warning': current.warning
            }
        )

    def create_summary_message(self, summary: TickSummary) -> AlertMessage:
        """
        根据周期汇总创建健康检查报告

        Args:
            summary: 周期汇总

        Returns:
            AlertMessage: 汇总消息
        """
        if summary.has_failures:
            title = '🚨 健康检查 - 发现严重问题'
            failed = [name for name, r in summary.results.items() if not r.healthy]
            text = f"以下服务不可用: {', '.join(failed)}"
            action = '需要立即处理'
        elif summary.has_warnings:
            title = '⚠️ 健康检查 - 性能告警'
            slow = [name for name, r in summary.results.items() if r.warning]
            text = f"以下服务响应缓慢: {', '.join(slow)}"
            action = '持续监控'
        else:
            title = '✅ 健康检查 - 所有服务正常'
            text = '所有服务运行正常'
            action = '持续监控'

        text += (f"\n\n共 {summary.total} 个服务: 健康 {summary.healthy}，"
                 f"缓慢 {summary.warning}，不可用 {summary.down}")

        return AlertMessage(
            title=title,
            message=text,
            status='SUMMARY',
            severity=summary.severity,
            timestamp=summary.timestamp,
            action=action,
            services={name: _status_entry(r) for name, r in summary.results.items()},
            metadata={
                'total': summary.total,
                'healthy': summary.healthy,
                'warning': summary.warning,
                'down': summary.down
            }
        )

    @staticmethod
    def create_system_failure_message(error: Exception) -> AlertMessage:
        """监控系统自身异常的告警消息"""
        return AlertMessage(
            title='🚨 监控系统异常',
            message=f"健康检查周期执行失败: {error}",
            status='SYSTEM',
            severity='critical',
            error_message=str(error),
            action='检查监控服务日志，必要时重启'
        )

    def get_alerter_count(self) -> int:
        return len(self.alerters)

    def get_alerter_names(self) -> List[str]:
        return [alerter.name for alerter in self.alerters]
