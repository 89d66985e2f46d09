#!/usr/bin/env python3
"""
服务可用性监控主应用程序入口

集成所有组件，实现应用程序启动和优雅关闭，
添加信号处理和异常捕获。
"""

import argparse
import asyncio
import logging
import os
import signal
import sys
from typing import Optional, Dict, Any

from uptime_monitor.alerts.integrator import AlertIntegrator
from uptime_monitor.alerts.manager import AlertManager
from uptime_monitor.services.alert_gate import AlertGate
from uptime_monitor.services.config_manager import ConfigManager
from uptime_monitor.services.history_store import HistoryStore
from uptime_monitor.services.monitor_scheduler import MonitorScheduler
from uptime_monitor.utils.exceptions import UptimeMonitorError, ConfigError
from uptime_monitor.utils.log_manager import log_manager, get_logger

# 版本信息
__version__ = "1.0.0"


class UptimeMonitorApp:
    """服务可用性监控主应用程序类"""

    def __init__(self, config_path: str, log_overrides: Optional[Dict[str, Any]] = None):
        """初始化应用程序

        Args:
            config_path: 配置文件路径
            log_overrides: 命令行指定的日志配置，覆盖配置文件
        """
        self.config_path = config_path
        self.log_overrides = log_overrides or {}
        self.logger: Optional[logging.Logger] = None
        self.is_running = False
        self.shutdown_event = asyncio.Event()

        # 核心组件
        self.config_manager: Optional[ConfigManager] = None
        self.history_store: Optional[HistoryStore] = None
        self.alert_gate: Optional[AlertGate] = None
        self.monitor_scheduler: Optional[MonitorScheduler] = None
        self.alert_integrator: Optional[AlertIntegrator] = None

        self._scheduler_task: Optional[asyncio.Task] = None

    async def initialize(self):
        """初始化应用程序组件"""
        try:
            self.config_manager = ConfigManager(self.config_path)
            config = self.config_manager.load_config()
            global_config = self.config_manager.get_global_config()

            self._configure_logging(global_config)
            self.logger = get_logger('main')
            self.logger.info("开始初始化服务可用性监控")

            self.history_store = HistoryStore(global_config['history_size'])
            self.alert_gate = AlertGate(self.config_manager.get_alert_cooldown())

            alert_manager = AlertManager(self.config_manager.get_alerts_config())
            self.alert_integrator = AlertIntegrator(
                self.history_store,
                self.alert_gate,
                alert_manager,
                send_tick_summary=global_config['send_tick_summary']
            )

            self.monitor_scheduler = MonitorScheduler(
                max_concurrent_checks=global_config['max_concurrent_checks'],
                check_interval=self.config_manager.get_check_interval()
            )
            self.monitor_scheduler.configure_services(config['services'], global_config)
            for service_name, (warning_ms, _) in self.monitor_scheduler.thresholds.items():
                self.alert_integrator.warning_thresholds[service_name] = warning_ms

            self.monitor_scheduler.set_tick_results_callback(self.alert_integrator.handle_tick)
            self.monitor_scheduler.set_tick_error_callback(
                self.alert_integrator.report_tick_failure)

            self.logger.info("应用程序组件初始化完成")

        except Exception as e:
            if self.logger:
                self.logger.error(f"应用程序初始化失败: {e}", exc_info=True)
            else:
                print(f"应用程序初始化失败: {e}", file=sys.stderr)
            raise

    def _configure_logging(self, global_config: Dict[str, Any]):
        """配置日志系统

        Args:
            global_config: 全局配置
        """
        settings = {**global_config, **self.log_overrides}
        log_config = {
            'log_level': settings.get('log_level', 'INFO'),
            'enable_console': True,
            'enable_file': bool(settings.get('log_file'))
        }

        if settings.get('log_file'):
            log_config['log_file'] = settings['log_file']
            log_config['max_file_size'] = settings.get('max_log_size', 10 * 1024 * 1024)
            log_config['backup_count'] = settings.get('log_backup_count', 5)

        log_manager.configure(log_config)

    async def start(self):
        """启动应用程序，直到收到关闭信号"""
        if self.is_running:
            self.logger.warning("应用程序已经在运行")
            return

        try:
            self.is_running = True
            self.logger.info("启动服务可用性监控")

            self._scheduler_task = asyncio.create_task(self.monitor_scheduler.start())
            await self.shutdown_event.wait()

        except Exception as e:
            self.logger.error(f"应用程序运行异常: {e}", exc_info=True)
            raise
        finally:
            await self.stop()

    async def stop(self):
        """停止应用程序"""
        if not self.is_running:
            return

        self.logger.info("正在停止服务可用性监控...")
        self.is_running = False

        try:
            # 调度循环尚未开始时直接取消，否则等待当前周期完成
            scheduler_started = bool(self.monitor_scheduler and self.monitor_scheduler.is_running)
            if self.monitor_scheduler:
                await self.monitor_scheduler.stop()

            if self._scheduler_task and not self._scheduler_task.done():
                if not scheduler_started:
                    self._scheduler_task.cancel()
                await asyncio.gather(self._scheduler_task, return_exceptions=True)

            if self.alert_integrator:
                await self.alert_integrator.wait_for_deliveries()

            self.logger.info("服务可用性监控已停止")
            log_manager.cleanup()

        except Exception as e:
            print(f"停止应用程序时发生异常: {e}", file=sys.stderr)

    def shutdown(self):
        """触发应用程序关闭"""
        if self.logger:
            self.logger.info("收到关闭信号")
        self.shutdown_event.set()

    def get_status(self) -> Dict[str, Any]:
        """获取应用程序状态

        Returns:
            应用程序状态信息
        """
        status = {
            'is_running': self.is_running,
            'config_path': self.config_path
        }

        if self.monitor_scheduler:
            status['scheduler_stats'] = self.monitor_scheduler.get_scheduler_stats()

        if self.history_store:
            status['health_summary'] = self.history_store.get_health_summary()

        if self.alert_integrator:
            status['alert_stats'] = self.alert_integrator.get_alert_stats()

        return status


# 全局应用程序实例
app: Optional[UptimeMonitorApp] = None


def signal_handler(signum, frame):
    """信号处理器"""
    signal_name = signal.Signals(signum).name
    print(f"\n收到信号 {signal_name} ({signum})")

    if app:
        app.shutdown()
    else:
        print("应用程序未初始化，直接退出")
        sys.exit(0)


def create_argument_parser() -> argparse.ArgumentParser:
    """创建命令行参数解析器"""
    parser = argparse.ArgumentParser(
        prog='uptime-monitor',
        description='服务可用性监控 - 定时探测HTTP服务，状态变化时发送去重后的告警',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例用法:
  %(prog)s config.yaml                    # 使用指定配置文件启动监控
  %(prog)s --validate config.yaml        # 验证配置文件格式
  %(prog)s --test-alerts config.yaml     # 发送一条测试告警
  %(prog)s --check-once config.yaml      # 立即探测一次所有服务
  %(prog)s --version                      # 显示版本信息

支持的服务类型:
  - restful       HTTP GET 健康检查
  - rag_pipeline  RAG流水线（/health + LlamaIndex blueprints）

支持的告警类型:
  - teams         Microsoft Teams 工作流 webhook (Adaptive Card)
  - http          通用 HTTP webhook

配置文件格式请参考 config/example.yaml
        """
    )

    parser.add_argument('config_file', nargs='?', help='YAML配置文件路径')
    parser.add_argument('--version', '-v', action='version',
                        version=f'%(prog)s {__version__}')
    parser.add_argument('--validate', action='store_true', help='验证配置文件格式并退出')
    parser.add_argument('--test-alerts', action='store_true', help='测试告警系统并退出')
    parser.add_argument('--check-once', action='store_true', help='执行一次健康检查后退出')
    parser.add_argument('--log-level',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='设置日志级别（覆盖配置文件设置）')
    parser.add_argument('--log-file', help='日志文件路径（覆盖配置文件设置）')

    return parser


def validate_config_file(config_path: str) -> bool:
    """验证配置文件

    Args:
        config_path: 配置文件路径

    Returns:
        验证是否成功
    """
    try:
        print(f"正在验证配置文件: {config_path}")
        config = ConfigManager(config_path).load_config()
        global_config = config['global']

        print("✅ 配置文件验证成功!")
        print(f"   - 检查间隔: {global_config['check_interval_minutes']} 分钟")
        print(f"   - 告警冷却: {global_config['alert_cooldown_ms']} ms")
        print(f"   - 服务数量: {len(config['services'])}")
        for service_name, service_config in config['services'].items():
            print(f"     * {service_name} ({service_config['type']}): {service_config['url']}")
        print(f"   - 告警配置数量: {len(config['alerts'])}")
        for alert_config in config['alerts']:
            print(f"     * {alert_config['name']} ({alert_config['type']})")

        return True

    except Exception as e:
        print(f"❌ 配置文件验证失败: {e}")
        return False


async def run_alert_test(config_path: str) -> bool:
    """测试告警系统

    Args:
        config_path: 配置文件路径

    Returns:
        测试是否成功
    """
    try:
        print(f"正在测试告警系统: {config_path}")
        test_app = UptimeMonitorApp(config_path)
        await test_app.initialize()

        success = await test_app.alert_integrator.test_alert_system()
        print("✅ 告警系统测试成功!" if success else "❌ 告警系统测试失败!")
        return success

    except Exception as e:
        print(f"❌ 告警系统测试失败: {e}")
        return False


async def check_once(config_path: str) -> bool:
    """执行一次健康检查，不发送告警

    Args:
        config_path: 配置文件路径

    Returns:
        所有服务是否健康
    """
    try:
        print(f"正在执行健康检查: {config_path}")
        check_app = UptimeMonitorApp(config_path)
        await check_app.initialize()

        results = await check_app.monitor_scheduler.check_all_services_now()
        print(f"✅ 健康检查完成，共检查 {len(results)} 个服务:")

        for service_name, result in results.items():
            icon = '✅' if result.healthy else '❌'
            warning = ' ⚠️' if result.warning else ''
            error = f" - {result.error_text}" if result.error_text else ''
            print(f"   {icon} {service_name} ({result.response_time_ms}ms){error}{warning}")

        return all(result.healthy for result in results.values())

    except Exception as e:
        print(f"❌ 健康检查失败: {e}")
        return False


async def main():
    """主函数"""
    global app

    parser = create_argument_parser()
    args = parser.parse_args()

    if not args.config_file:
        parser.print_help()
        sys.exit(1)

    config_path = args.config_file
    if not os.path.exists(config_path):
        print(f"配置文件不存在: {config_path}", file=sys.stderr)
        sys.exit(1)

    if args.validate:
        sys.exit(0 if validate_config_file(config_path) else 1)

    if args.test_alerts:
        sys.exit(0 if await run_alert_test(config_path) else 1)

    if args.check_once:
        sys.exit(0 if await check_once(config_path) else 1)

    log_overrides = {}
    if args.log_level:
        log_overrides['log_level'] = args.log_level
    if args.log_file:
        log_overrides['log_file'] = args.log_file

    try:
        app = UptimeMonitorApp(config_path, log_overrides)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        await app.initialize()

        print(f"服务可用性监控 v{__version__} 已启动")
        print(f"配置文件: {config_path}")
        print("按 Ctrl+C 停止程序")

        await app.start()

    except KeyboardInterrupt:
        print("\n用户中断程序")
    except ConfigError as e:
        print(f"配置错误: {e}", file=sys.stderr)
        sys.exit(1)
    except UptimeMonitorError as e:
        print(f"监控系统错误: {e.format_error()}", file=sys.stderr)
        sys.exit(1)
    finally:
        if app:
            await app.stop()


def run():
    """命令行入口"""
    if sys.platform == "win32":
        asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())

    asyncio.run(main())


if __name__ == "__main__":
    run()
