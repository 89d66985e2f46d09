"""健康检查相关的数据模型"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional


@dataclass(frozen=True)
class ProbeOutcome:
    """单次HTTP探测的原始结果"""
    ok: bool
    elapsed_ms: int
    status_code: Optional[int] = None
    error_text: Optional[str] = None
    content_ok: bool = True  # 收到响应但内容校验失败时为False
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CheckResult:
    """分类后的健康检查结果，创建后不可修改"""
    service_id: str
    healthy: bool
    warning: bool
    critical: bool
    response_time_ms: Optional[int] = None
    status_code: Optional[int] = None
    error_text: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def status(self) -> str:
        """结果等级: healthy / warning / critical / error"""
        if not self.healthy:
            return 'error'
        if self.critical:
            return 'critical'
        if self.warning:
            return 'warning'
        return 'healthy'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'service_id': self.service_id,
            'healthy': self.healthy,
            'warning': self.warning,
            'critical': self.critical,
            'status': self.status,
            'response_time_ms': self.response_time_ms,
            'status_code': self.status_code,
            'error_text': self.error_text,
            'timestamp': self.timestamp.isoformat()
        }


class TransitionKind(Enum):
    """状态变化类型，值为告警去重键后缀"""
    WENT_DOWN = 'down'
    RECOVERED = 'up'
    BECAME_SLOW = 'slow'

    @property
    def alert_suffix(self) -> str:
        return self.value

    @property
    def severity(self) -> str:
        return _KIND_SEVERITY[self]

    @property
    def status(self) -> str:
        return _KIND_STATUS[self]


_KIND_SEVERITY = {
    TransitionKind.WENT_DOWN: 'critical',
    TransitionKind.RECOVERED: 'info',
    TransitionKind.BECAME_SLOW: 'warning',
}

_KIND_STATUS = {
    TransitionKind.WENT_DOWN: 'DOWN',
    TransitionKind.RECOVERED: 'UP',
    TransitionKind.BECAME_SLOW: 'SLOW',
}


@dataclass(frozen=True)
class TransitionEvent:
    """相邻两次检查结果之间的状态变化事件"""
    service_id: str
    kind: TransitionKind
    previous: CheckResult
    current: CheckResult


@dataclass
class AlertMessage:
    """告警消息模型"""
    title: str
    message: str
    status: str  # "DOWN", "UP", "SLOW", "SUMMARY", "SYSTEM", "TEST"
    severity: str = 'info'  # "info", "warning", "error", "critical"
    service_name: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)
    error_message: Optional[str] = None
    response_time_ms: Optional[int] = None
    action: str = '检查服务状态'
    services: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class TickSummary:
    """单次调度周期的汇总"""
    results: Dict[str, CheckResult]
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def healthy(self) -> int:
        return sum(1 for r in self.results.values() if r.healthy)

    @property
    def warning(self) -> int:
        return sum(1 for r in self.results.values() if r.warning)

    @property
    def down(self) -> int:
        return sum(1 for r in self.results.values() if not r.healthy)

    @property
    def has_failures(self) -> bool:
        return self.down > 0

    @property
    def has_warnings(self) -> bool:
        return self.warning > 0

    @property
    def severity(self) -> str:
        if self.has_failures:
            return 'critical'
        if self.has_warnings:
            return 'warning'
        return 'info'
