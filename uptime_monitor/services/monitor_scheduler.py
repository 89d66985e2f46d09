"""监控调度器模块

按固定间隔执行健康检查周期：启动后立即执行第一次，之后每隔一个间隔执行一次。
周期之间不重叠；同一周期内各服务的探测并发执行。
"""

import asyncio
import logging
import time
from datetime import datetime, timedelta
from typing import Dict, Any, Optional, Callable, Awaitable, Tuple

from .evaluator import evaluate
from ..checkers.base import BaseHealthChecker
from ..checkers.factory import health_checker_factory
from ..models.health_check import CheckResult, ProbeOutcome
from ..utils.exceptions import ErrorCode, SchedulerError

DEFAULT_CHECK_INTERVAL = timedelta(minutes=30)


class MonitorScheduler:
    """监控调度器

    单个周期内并发探测所有服务，分类结果后交给结果回调处理；
    周期内的未捕获异常交给错误回调，不会终止调度循环。
    """

    def __init__(self, max_concurrent_checks: int = 10,
                 check_interval: timedelta = DEFAULT_CHECK_INTERVAL):
        """初始化监控调度器

        Args:
            max_concurrent_checks: 同一周期内最大并发探测数量
            check_interval: 周期间隔
        """
        self.max_concurrent_checks = max_concurrent_checks
        self.check_interval = check_interval
        self.checkers: Dict[str, BaseHealthChecker] = {}
        self.thresholds: Dict[str, Tuple[int, int]] = {}  # 服务名 -> (告警阈值, 严重阈值)
        self.is_running = False
        self.tick_count = 0
        self.last_tick_time: Optional[datetime] = None
        self.semaphore: Optional[asyncio.Semaphore] = None
        self._stop_event: Optional[asyncio.Event] = None
        self.logger = logging.getLogger(__name__)

        # 回调函数
        self.on_tick_results: Optional[
            Callable[[Dict[str, CheckResult]], Awaitable[Any]]] = None
        self.on_tick_error: Optional[Callable[[Exception], Awaitable[None]]] = None

    def configure_services(self, services_config: Dict[str, Any],
                           global_config: Optional[Dict[str, Any]] = None):
        """配置监控服务

        Args:
            services_config: 服务配置字典，键为服务标识
            global_config: 全局配置字典，提供默认阈值

        Raises:
            CheckerError: 探测器创建失败
        """
        global_config = global_config or {}
        warning_default = global_config.get('response_time_warning_ms', 3000)
        critical_default = global_config.get('response_time_critical_ms', 10000)

        self.checkers.clear()
        self.thresholds.clear()

        for service_name, service_config in services_config.items():
            effective_config = {
                'response_time_warning_ms': warning_default,
                'response_time_critical_ms': critical_default,
                **service_config
            }
            self.checkers[service_name] = health_checker_factory.create_checker(
                service_name, effective_config)
            self.thresholds[service_name] = (
                effective_config['response_time_warning_ms'],
                effective_config['response_time_critical_ms']
            )

            self.logger.info(
                f"配置服务 {service_name}: 类型={service_config.get('type')}, "
                f"URL={service_config.get('url')}, 阈值={self.thresholds[service_name]}")

    def set_tick_results_callback(self, callback: Callable[
        [Dict[str, CheckResult]], Awaitable[Any]]):
        """设置周期结果回调函数"""
        self.on_tick_results = callback

    def set_tick_error_callback(self, callback: Callable[[Exception], Awaitable[None]]):
        """设置周期异常回调函数"""
        self.on_tick_error = callback

    async def start(self):
        """启动调度循环，直到 stop() 被调用"""
        if self.is_running:
            self.logger.warning("监控调度器已经在运行")
            return

        self.is_running = True
        self._stop_event = asyncio.Event()
        interval_seconds = self.check_interval.total_seconds()
        self.logger.info(
            f"启动监控调度器，共 {len(self.checkers)} 个服务，"
            f"检查间隔 {interval_seconds / 60:g} 分钟")

        try:
            while self.is_running:
                tick_started = time.monotonic()
                await self.run_tick()

                remaining = interval_seconds - (time.monotonic() - tick_started)
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=max(0.0, remaining))
                except asyncio.TimeoutError:
                    pass
        except asyncio.CancelledError:
            self.logger.info("监控调度器被取消")
        finally:
            self.is_running = False
            self.logger.info("监控调度器已停止")

    async def stop(self):
        """停止调度循环，正在执行的周期会先完成"""
        if not self.is_running:
            return

        self.logger.info("正在停止监控调度器...")
        self.is_running = False
        if self._stop_event:
            self._stop_event.set()

    async def run_tick(self) -> Dict[str, CheckResult]:
        """执行一个完整的检查周期

        Returns:
            服务标识 -> 检查结果；周期异常时返回空字典
        """
        self.tick_count += 1
        tick_number = self.tick_count
        start_time = time.monotonic()
        self.logger.info(f"开始第 {tick_number} 次健康检查")

        results: Dict[str, CheckResult] = {}
        try:
            results = await self.check_all_services_now()
            if self.on_tick_results:
                await self.on_tick_results(results)
        except Exception as e:
            self.logger.error(f"第 {tick_number} 次健康检查失败: {e}", exc_info=True)
            results = {}
            if self.on_tick_error:
                try:
                    await self.on_tick_error(SchedulerError(
                        f"第 {tick_number} 次健康检查失败: {e}", ErrorCode.TICK_EXECUTION_ERROR,
                        tick_number=tick_number, cause=e))
                except Exception as callback_error:
                    self.logger.error(f"错误回调执行失败: {callback_error}")
        finally:
            self.last_tick_time = datetime.now()

        duration_ms = int((time.monotonic() - start_time) * 1000)
        self.logger.info(
            f"第 {tick_number} 次健康检查完成 ({duration_ms}ms)，"
            f"下次检查时间: {self.get_next_tick_time().strftime('%Y-%m-%d %H:%M:%S')}")
        return results

    async def check_all_services_now(self) -> Dict[str, CheckResult]:
        """立即并发探测所有服务

        Returns:
            服务标识 -> 检查结果，顺序与配置一致
        """
        if self.semaphore is None:
            self.semaphore = asyncio.Semaphore(self.max_concurrent_checks)

        service_names = list(self.checkers)
        results = await asyncio.gather(*(self._check_service(name) for name in service_names))
        return dict(zip(service_names, results))

    async def _check_service(self, service_name: str) -> CheckResult:
        """探测并分类单个服务，探测异常按传输层失败处理"""
        checker = self.checkers[service_name]
        warning_ms, critical_ms = self.thresholds[service_name]

        async with self.semaphore:
            start_time = time.monotonic()
            try:
                outcome = await checker.probe()
            except Exception as e:
                self.logger.error(f"探测服务 {service_name} 时发生异常: {e}", exc_info=True)
                outcome = ProbeOutcome(
                    ok=False,
                    elapsed_ms=int((time.monotonic() - start_time) * 1000),
                    error_text=str(e) or e.__class__.__name__
                )

        result = evaluate(service_name, outcome, warning_ms, critical_ms)

        status = {'healthy': '健康', 'warning': '缓慢', 'critical': '严重缓慢',
                  'error': '不可用'}[result.status]
        detail = f" - {result.error_text}" if result.error_text else ''
        self.logger.info(
            f"服务 {service_name}: {status} ({result.response_time_ms}ms){detail}")
        return result

    def get_next_tick_time(self) -> datetime:
        if self.last_tick_time is None:
            return datetime.now()
        return self.last_tick_time + self.check_interval

    def get_scheduler_stats(self) -> Dict[str, Any]:
        """获取调度器统计信息"""
        return {
            'is_running': self.is_running,
            'tick_count': self.tick_count,
            'check_interval_minutes': self.check_interval.total_seconds() / 60,
            'last_tick_time': self.last_tick_time.isoformat() if self.last_tick_time else None,
            'next_tick_time': (self.get_next_tick_time().isoformat()
                               if self.last_tick_time else None),
            'total_services': len(self.checkers),
            'configured_services': list(self.checkers.keys()),
            'max_concurrent_checks': self.max_concurrent_checks
        }
