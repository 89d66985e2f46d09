"""探测结果分类

把一次原始探测结果转换为 CheckResult，纯函数，无副作用。
"""

from datetime import datetime
from typing import Optional

from ..models.health_check import ProbeOutcome, CheckResult


def evaluate(service_id: str, outcome: ProbeOutcome,
             warning_threshold_ms: int, critical_threshold_ms: int,
             timestamp: Optional[datetime] = None) -> CheckResult:
    """分类一次探测结果

    传输层失败（超时、连接错误、DNS失败、5xx）一律视为严重；
    收到响应时 healthy 取决于状态码是否小于400，warning/critical 只看响应时间。

    Args:
        service_id: 服务标识
        outcome: 原始探测结果
        warning_threshold_ms: 慢响应告警阈值（毫秒）
        critical_threshold_ms: 慢响应严重阈值（毫秒）
        timestamp: 结果时间，默认当前时间

    Returns:
        CheckResult: 分类后的检查结果
    """
    timestamp = timestamp or datetime.now()
    elapsed_ms = max(0, int(outcome.elapsed_ms))

    if not outcome.ok:
        return CheckResult(
            service_id=service_id,
            healthy=False,
            warning=False,
            critical=True,
            response_time_ms=elapsed_ms,
            status_code=outcome.status_code,
            error_text=outcome.error_text or '服务不可达',
            timestamp=timestamp,
            metadata=dict(outcome.metadata)
        )

    status_ok = outcome.status_code is not None and outcome.status_code < 400
    error_text = outcome.error_text
    if outcome.status_code is not None and not status_ok and not error_text:
        error_text = f"HTTP状态码: {outcome.status_code}"

    return CheckResult(
        service_id=service_id,
        healthy=status_ok and outcome.content_ok,
        warning=elapsed_ms > warning_threshold_ms,
        critical=elapsed_ms > critical_threshold_ms,
        response_time_ms=elapsed_ms,
        status_code=outcome.status_code,
        error_text=error_text,
        timestamp=timestamp,
        metadata=dict(outcome.metadata)
    )
