"""告警闸门测试"""

from datetime import datetime, timedelta

import pytest

from uptime_monitor.models.health_check import TransitionKind
from uptime_monitor.services.alert_gate import AlertGate, DEFAULT_COOLDOWN

T0 = datetime(2024, 1, 1, 0, 0, 0)


def ms(value):
    return timedelta(milliseconds=value)


class TestAlertGate:
    """AlertGate 测试类"""

    def setup_method(self):
        """测试前准备"""
        self.gate = AlertGate(cooldown=ms(3600000))

    def test_default_cooldown(self):
        """测试默认冷却时间为1小时"""
        assert AlertGate().cooldown == DEFAULT_COOLDOWN == timedelta(hours=1)

    def test_negative_cooldown_rejected(self):
        """测试冷却时间不能为负数"""
        with pytest.raises(ValueError):
            AlertGate(cooldown=timedelta(seconds=-1))

    def test_first_alert_is_emitted(self):
        """测试首次告警允许发送"""
        assert self.gate.should_emit('api', TransitionKind.WENT_DOWN, T0) is True

    def test_should_emit_does_not_mutate(self):
        """测试判断不修改状态"""
        for _ in range(3):
            assert self.gate.should_emit('api', TransitionKind.WENT_DOWN, T0) is True
        assert self.gate.get_ledger() == {}

    def test_cooldown_scenario(self):
        """测试冷却期：30分钟后抑制，超过1小时后允许"""
        self.gate.record_emitted('api', TransitionKind.WENT_DOWN, T0)

        assert self.gate.should_emit('api', TransitionKind.WENT_DOWN, T0 + ms(1800000)) is False
        assert self.gate.should_emit('api', TransitionKind.WENT_DOWN, T0 + ms(3600001)) is True

    def test_cooldown_boundary(self):
        """测试恰好到达冷却时间时允许发送"""
        self.gate.record_emitted('api', TransitionKind.WENT_DOWN, T0)

        assert self.gate.should_emit('api', TransitionKind.WENT_DOWN, T0 + ms(3599999)) is False
        assert self.gate.should_emit('api', TransitionKind.WENT_DOWN, T0 + ms(3600000)) is True

    def test_down_and_up_keys_are_independent(self):
        """测试宕机和恢复告警不共享冷却"""
        self.gate.record_emitted('api', TransitionKind.WENT_DOWN, T0)

        assert self.gate.should_emit('api', TransitionKind.RECOVERED, T0 + ms(1000)) is True
        assert self.gate.should_emit('api', TransitionKind.BECAME_SLOW, T0 + ms(1000)) is True

    def test_services_are_independent(self):
        """测试不同服务不共享冷却"""
        self.gate.record_emitted('api', TransitionKind.WENT_DOWN, T0)

        assert self.gate.should_emit('portal', TransitionKind.WENT_DOWN, T0 + ms(1000)) is True

    def test_alert_key_format(self):
        """测试告警键格式"""
        assert AlertGate.alert_key('EssayBot API', TransitionKind.WENT_DOWN) == 'EssayBot API_down'
        assert AlertGate.alert_key('EssayBot API', TransitionKind.RECOVERED) == 'EssayBot API_up'
        assert AlertGate.alert_key('EssayBot API', TransitionKind.BECAME_SLOW) == 'EssayBot API_slow'

    def test_cooldown_measured_from_last_emitted(self):
        """测试冷却从最近一次发送开始计算"""
        self.gate.record_emitted('api', TransitionKind.WENT_DOWN, T0)
        self.gate.record_emitted('api', TransitionKind.WENT_DOWN, T0 + ms(3600000))

        assert self.gate.should_emit('api', TransitionKind.WENT_DOWN, T0 + ms(5400000)) is False
        assert self.gate.get_last_emitted('api', TransitionKind.WENT_DOWN) == T0 + ms(3600000)

    def test_flapping_service_emits_once_per_window(self):
        """测试每个周期都抖动的服务，每个冷却窗口最多发送一次宕机告警"""
        emitted = []
        tick = timedelta(minutes=5)
        for i in range(36):  # 3小时
            now = T0 + tick * i
            if i % 2 == 1 and self.gate.should_emit('api', TransitionKind.WENT_DOWN, now):
                self.gate.record_emitted('api', TransitionKind.WENT_DOWN, now)
                emitted.append(now)

        assert len(emitted) == 3
        for earlier, later in zip(emitted, emitted[1:]):
            assert later - earlier >= timedelta(hours=1)

    def test_zero_cooldown(self):
        """测试冷却时间为0时不抑制"""
        gate = AlertGate(cooldown=timedelta(0))
        gate.record_emitted('api', TransitionKind.WENT_DOWN, T0)

        assert gate.should_emit('api', TransitionKind.WENT_DOWN, T0) is True
