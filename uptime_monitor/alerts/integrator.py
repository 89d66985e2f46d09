"""告警系统集成器

串联一个调度周期内的核心流程：
检查结果 -> 历史记录 -> 状态变化检测 -> 告警闸门 -> 告警投递
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set

from .manager import AlertManager
from ..models.health_check import (
    AlertMessage, CheckResult, TickSummary, TransitionEvent
)
from ..services.alert_gate import AlertGate
from ..services.history_store import HistoryStore
from ..services.transition_detector import detect


class AlertIntegrator:
    """告警系统集成器

    告警投递在后台任务中进行，投递成功后才记录到告警闸门，
    投递失败不会开始冷却期。
    """

    def __init__(self, history_store: HistoryStore, alert_gate: AlertGate,
                 alert_manager: AlertManager, send_tick_summary: bool = True,
                 clock: Callable[[], datetime] = datetime.now):
        """初始化告警集成器

        Args:
            history_store: 历史记录存储
            alert_gate: 告警闸门
            alert_manager: 告警管理器
            send_tick_summary: 每个周期结束后是否发送汇总报告
            clock: 当前时间函数
        """
        self.history_store = history_store
        self.alert_gate = alert_gate
        self.alert_manager = alert_manager
        self.send_tick_summary = send_tick_summary
        self.clock = clock
        self.logger = logging.getLogger(__name__)

        # 服务标识 -> 慢响应阈值，用于性能告警描述
        self.warning_thresholds: Dict[str, int] = {}

        self._pending_deliveries: Set[asyncio.Task] = set()
        self.stats = {
            'events_detected': 0,
            'alerts_suppressed': 0,
            'alerts_sent': 0,
            'alerts_failed': 0
        }

    def process_result(self, result: CheckResult) -> List[TransitionEvent]:
        """处理单个服务的检查结果

        Args:
            result: 检查结果

        Returns:
            本次检测到的状态变化事件
        """
        service_id = result.service_id
        self.history_store.append(service_id, result)
        previous, current = self.history_store.latest_two(service_id)

        events = detect(service_id, previous, current)
        for event in events:
            self.stats['events_detected'] += 1
            self.logger.warning(
                f"服务 {service_id} 状态变化: {event.kind.name} "
                f"({previous.status} -> {current.status})")

            now = self.clock()
            if not self.alert_gate.should_emit(service_id, event.kind, now):
                self.stats['alerts_suppressed'] += 1
                self.logger.info(f"告警冷却中，跳过发送: {service_id} {event.kind.name}")
                continue

            message = self.alert_manager.create_transition_message(
                event, self.warning_thresholds.get(service_id))
            self._schedule_delivery(message, event, now)

        return events

    def process_tick(self, results: Dict[str, CheckResult]) -> TickSummary:
        """处理一个周期内所有服务的检查结果

        Args:
            results: 服务标识 -> 检查结果，按配置顺序

        Returns:
            TickSummary: 周期汇总
        """
        for result in results.values():
            self.process_result(result)

        summary = TickSummary(results=dict(results), timestamp=self.clock())
        self.logger.info(
            f"周期汇总: 共 {summary.total} 个服务，健康 {summary.healthy}，"
            f"缓慢 {summary.warning}，不可用 {summary.down}")

        if self.send_tick_summary and results:
            self._schedule_delivery(self.alert_manager.create_summary_message(summary))

        return summary

    async def handle_tick(self, results: Dict[str, CheckResult]) -> TickSummary:
        """调度器周期结果回调

        先等待上一周期的告警投递全部结束，再写入历史记录和告警闸门。
        """
        await self.wait_for_deliveries()
        return self.process_tick(results)

    async def report_tick_failure(self, error: Exception):
        """调度器周期异常回调，发送监控系统异常告警，不经过告警闸门"""
        self._schedule_delivery(self.alert_manager.create_system_failure_message(error))

    def _schedule_delivery(self, message: AlertMessage,
                           event: Optional[TransitionEvent] = None,
                           now: Optional[datetime] = None):
        task = asyncio.get_running_loop().create_task(self._deliver(message, event, now))
        self._pending_deliveries.add(task)
        task.add_done_callback(self._pending_deliveries.discard)

    async def _deliver(self, message: AlertMessage,
                       event: Optional[TransitionEvent], now: Optional[datetime]) -> bool:
        try:
            success = await self.alert_manager.send_alert(message)
        except Exception as e:
            self.logger.error(f"告警投递异常: {e}", exc_info=True)
            success = False

        if success:
            self.stats['alerts_sent'] += 1
            if event is not None:
                self.alert_gate.record_emitted(event.service_id, event.kind, now)
        else:
            self.stats['alerts_failed'] += 1
            self.logger.error(f"告警投递失败，未记录冷却: {message.title}")

        return success

    @property
    def pending_deliveries(self) -> int:
        return len(self._pending_deliveries)

    async def wait_for_deliveries(self):
        """等待所有未完成的告警投递结束"""
        if self._pending_deliveries:
            await asyncio.gather(*list(self._pending_deliveries), return_exceptions=True)

    async def test_alert_system(self) -> bool:
        """发送一条测试告警，验证告警通道

        Returns:
            bool: 测试消息是否投递成功
        """
        message = AlertMessage(
            title='🧪 测试告警',
            message='这是一条测试告警，用于验证告警通道是否可用',
            status='TEST',
            severity='info',
            action='无需处理'
        )
        success = await self.alert_manager.send_alert(message)
        if success:
            self.logger.info("告警系统测试成功")
        else:
            self.logger.error("告警系统测试失败")
        return success

    def get_alert_stats(self) -> Dict[str, Any]:
        """获取告警统计信息"""
        return {
            **self.stats,
            'pending_deliveries': self.pending_deliveries,
            'alerter_count': self.alert_manager.get_alerter_count(),
            'alerter_names': self.alert_manager.get_alerter_names(),
            'ledger': {key: ts.isoformat()
                       for key, ts in self.alert_gate.get_ledger().items()}
        }
