"""可用性监控异常定义

每个异常携带错误代码和上下文详情。探测失败不使用异常表示，
由探测器返回失败的 ProbeOutcome。
"""

import traceback
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(Enum):
    """错误代码，按千位划分类别"""
    # 通用
    UNKNOWN_ERROR = 1000
    INITIALIZATION_ERROR = 1001

    # 配置
    CONFIG_FILE_NOT_FOUND = 2000
    CONFIG_PARSE_ERROR = 2001
    CONFIG_VALIDATION_ERROR = 2002

    # 探测器
    CHECKER_INITIALIZATION_ERROR = 3000
    UNSUPPORTED_SERVICE_TYPE = 3001

    # 告警
    ALERT_CONFIG_ERROR = 4000
    ALERT_SEND_ERROR = 4001

    # 调度
    SCHEDULER_ERROR = 5000
    TICK_EXECUTION_ERROR = 5001


class UptimeMonitorError(Exception):
    """可用性监控基础异常"""

    default_code = ErrorCode.UNKNOWN_ERROR
    default_recoverable = True

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recoverable: Optional[bool] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = dict(details or {})
        self.cause = cause
        self.recoverable = self.default_recoverable if recoverable is None else recoverable
        self.timestamp = datetime.now()

    def _with_context(self, **context) -> None:
        # 只记录有值的上下文字段
        self.details.update({k: v for k, v in context.items() if v is not None})

    def to_dict(self) -> Dict[str, Any]:
        """转换为可序列化的字典"""
        cause_trace = None
        if self.cause is not None:
            cause_trace = ''.join(traceback.format_exception(
                type(self.cause), self.cause, self.cause.__traceback__))

        return {
            'error_code': self.error_code.value,
            'error_name': self.error_code.name,
            'message': self.message,
            'details': self.details,
            'recoverable': self.recoverable,
            'timestamp': self.timestamp.isoformat(),
            'cause': str(self.cause) if self.cause else None,
            'traceback': cause_trace
        }

    def format_error(self) -> str:
        parts = [f"[{self.error_code.name}] {self.message}"]
        if self.details:
            parts.append("(详情: " + ", ".join(f"{k}={v}" for k, v in self.details.items()) + ")")
        if self.cause:
            parts.append(f"(原因: {self.cause})")
        return ' '.join(parts)


class ConfigError(UptimeMonitorError):
    """配置文件缺失、格式错误或验证失败，只在启动时出现"""

    default_code = ErrorCode.CONFIG_VALIDATION_ERROR
    default_recoverable = False

    def __init__(self, message: str, error_code: Optional[ErrorCode] = None,
                 config_path: Optional[str] = None, **kwargs):
        super().__init__(message, error_code, **kwargs)
        self._with_context(config_path=config_path)


class CheckerError(UptimeMonitorError):
    """探测器创建失败"""

    default_code = ErrorCode.CHECKER_INITIALIZATION_ERROR

    def __init__(self, message: str, error_code: Optional[ErrorCode] = None,
                 service_name: Optional[str] = None, **kwargs):
        super().__init__(message, error_code, **kwargs)
        self._with_context(service_name=service_name)


class AlertError(UptimeMonitorError):
    """告警相关异常"""

    default_code = ErrorCode.ALERT_SEND_ERROR

    def __init__(self, message: str, error_code: Optional[ErrorCode] = None,
                 alert_name: Optional[str] = None, **kwargs):
        super().__init__(message, error_code, **kwargs)
        self._with_context(alert_name=alert_name)


class AlertConfigError(AlertError):
    """告警器配置无效"""

    default_code = ErrorCode.ALERT_CONFIG_ERROR
    default_recoverable = False

    def __init__(self, message: str, alert_name: Optional[str] = None, **kwargs):
        super().__init__(message, alert_name=alert_name, **kwargs)


class AlertSendError(AlertError):
    """告警投递失败，不推进告警冷却计时"""

    def __init__(self, message: str, alert_name: Optional[str] = None, **kwargs):
        super().__init__(message, alert_name=alert_name, **kwargs)


class SchedulerError(UptimeMonitorError):
    """检查周期执行失败"""

    default_code = ErrorCode.SCHEDULER_ERROR

    def __init__(self, message: str, error_code: Optional[ErrorCode] = None,
                 tick_number: Optional[int] = None, **kwargs):
        super().__init__(message, error_code, **kwargs)
        self._with_context(tick_number=tick_number)
