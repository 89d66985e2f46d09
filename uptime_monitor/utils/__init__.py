"""工具模块"""

from .exceptions import (
    UptimeMonitorError, ConfigError, CheckerError, AlertError, AlertConfigError,
    AlertSendError, SchedulerError
)
from .log_manager import LogManager, LogLevel, get_logger, configure_logging, log_manager

__all__ = [
    'UptimeMonitorError', 'ConfigError', 'CheckerError', 'AlertError',
    'AlertConfigError', 'AlertSendError', 'SchedulerError',
    'LogManager', 'LogLevel', 'get_logger', 'configure_logging', 'log_manager'
]
