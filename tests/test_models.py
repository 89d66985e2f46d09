"""测试数据模型"""

import dataclasses
from datetime import datetime

import pytest

from uptime_monitor.models.health_check import (
    AlertMessage, CheckResult, ProbeOutcome, TickSummary, TransitionEvent, TransitionKind
)


def make_result(service_id="api", healthy=True, warning=False, critical=False, **kwargs):
    return CheckResult(service_id=service_id, healthy=healthy, warning=warning,
                       critical=critical, **kwargs)


class TestCheckResult:
    """测试CheckResult数据模型"""

    def test_create_check_result(self):
        """测试创建检查结果"""
        result = make_result(response_time_ms=120, status_code=200)

        assert result.service_id == "api"
        assert result.healthy is True
        assert result.response_time_ms == 120
        assert result.error_text is None
        assert isinstance(result.timestamp, datetime)
        assert result.metadata == {}

    def test_check_result_is_immutable(self):
        """测试检查结果不可修改"""
        result = make_result()

        with pytest.raises(dataclasses.FrozenInstanceError):
            result.healthy = False

    @pytest.mark.parametrize("healthy,warning,critical,expected", [
        (True, False, False, 'healthy'),
        (True, True, False, 'warning'),
        (True, True, True, 'critical'),
        (False, False, True, 'error'),
        (False, True, False, 'error'),
    ])
    def test_status(self, healthy, warning, critical, expected):
        """测试结果等级"""
        assert make_result(healthy=healthy, warning=warning, critical=critical).status == expected

    def test_to_dict(self):
        """测试转换为字典"""
        timestamp = datetime(2024, 1, 1, 12, 0, 0)
        data = make_result(healthy=False, critical=True, response_time_ms=10000,
                           error_text='timeout', timestamp=timestamp).to_dict()

        assert data['service_id'] == 'api'
        assert data['status'] == 'error'
        assert data['error_text'] == 'timeout'
        assert data['timestamp'] == '2024-01-01T12:00:00'


class TestTransitionKind:
    """测试状态变化类型"""

    def test_alert_suffixes_are_distinct(self):
        """测试告警键后缀"""
        assert TransitionKind.WENT_DOWN.alert_suffix == 'down'
        assert TransitionKind.RECOVERED.alert_suffix == 'up'
        assert TransitionKind.BECAME_SLOW.alert_suffix == 'slow'

    def test_severity_and_status(self):
        """测试告警级别和状态"""
        assert TransitionKind.WENT_DOWN.severity == 'critical'
        assert TransitionKind.WENT_DOWN.status == 'DOWN'
        assert TransitionKind.RECOVERED.severity == 'info'
        assert TransitionKind.RECOVERED.status == 'UP'
        assert TransitionKind.BECAME_SLOW.severity == 'warning'
        assert TransitionKind.BECAME_SLOW.status == 'SLOW'


class TestProbeOutcome:
    """测试探测结果"""

    def test_defaults(self):
        """测试默认值"""
        outcome = ProbeOutcome(ok=True, elapsed_ms=50, status_code=200)

        assert outcome.content_ok is True
        assert outcome.error_text is None
        assert outcome.metadata == {}


class TestTickSummary:
    """测试周期汇总"""

    def test_counts(self):
        """测试各类计数"""
        summary = TickSummary(results={
            'a': make_result('a'),
            'b': make_result('b', warning=True),
            'c': make_result('c', healthy=False, critical=True),
        })

        assert summary.total == 3
        assert summary.healthy == 2
        assert summary.warning == 1
        assert summary.down == 1
        assert summary.has_failures is True
        assert summary.severity == 'critical'

    def test_severity_warning_only(self):
        """测试只有慢响应时的级别"""
        summary = TickSummary(results={'a': make_result('a', warning=True)})
        assert summary.severity == 'warning'

    def test_severity_all_healthy(self):
        """测试全部健康时的级别"""
        summary = TickSummary(results={'a': make_result('a')})
        assert summary.has_failures is False
        assert summary.has_warnings is False
        assert summary.severity == 'info'


class TestAlertMessage:
    """测试告警消息"""

    def test_create_alert_message(self):
        """测试创建告警消息"""
        message = AlertMessage(title='标题', message='内容', status='DOWN',
                               severity='critical', service_name='api')

        assert message.status == 'DOWN'
        assert message.severity == 'critical'
        assert message.services == {}
        assert isinstance(message.timestamp, datetime)


def test_transition_event_fields():
    """测试状态变化事件字段"""
    previous = make_result(healthy=True)
    current = make_result(healthy=False, critical=True)
    event = TransitionEvent('api', TransitionKind.WENT_DOWN, previous, current)

    assert event.previous is previous
    assert event.current is current
