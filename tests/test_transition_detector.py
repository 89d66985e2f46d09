"""状态变化检测测试"""

from uptime_monitor.models.health_check import CheckResult, TransitionKind
from uptime_monitor.services.history_store import HistoryStore
from uptime_monitor.services.transition_detector import detect


def make_result(healthy=True, warning=False):
    return CheckResult(service_id='api', healthy=healthy, warning=warning,
                       critical=not healthy)


HEALTHY = make_result()
SLOW = make_result(warning=True)
DOWN = make_result(healthy=False)


class TestDetect:
    """detect 测试类"""

    def test_first_observation_has_no_transition(self):
        """测试首次检查只建立基线"""
        for current in (HEALTHY, SLOW, DOWN):
            assert detect('api', None, current) == []

    def test_went_down(self):
        """测试健康 -> 不健康"""
        events = detect('api', HEALTHY, DOWN)

        assert len(events) == 1
        assert events[0].kind is TransitionKind.WENT_DOWN
        assert events[0].previous is HEALTHY
        assert events[0].current is DOWN
        assert events[0].service_id == 'api'

    def test_went_down_while_slow_reports_only_down(self):
        """测试宕机且变慢时只报告宕机"""
        slow_and_down = make_result(healthy=False, warning=True)
        events = detect('api', HEALTHY, slow_and_down)

        assert [e.kind for e in events] == [TransitionKind.WENT_DOWN]

    def test_recovered(self):
        """测试不健康 -> 健康"""
        events = detect('api', DOWN, HEALTHY)

        assert [e.kind for e in events] == [TransitionKind.RECOVERED]

    def test_recovered_slow_reports_only_recovery(self):
        """测试恢复但响应缓慢时只报告恢复"""
        events = detect('api', DOWN, SLOW)

        assert [e.kind for e in events] == [TransitionKind.RECOVERED]

    def test_became_slow(self):
        """测试健康 -> 健康但缓慢"""
        events = detect('api', HEALTHY, SLOW)

        assert [e.kind for e in events] == [TransitionKind.BECAME_SLOW]

    def test_still_slow_has_no_transition(self):
        """测试持续缓慢不重复报告"""
        assert detect('api', SLOW, SLOW) == []

    def test_back_to_fast_has_no_transition(self):
        """测试缓慢 -> 正常不产生事件"""
        assert detect('api', SLOW, HEALTHY) == []

    def test_unchanged_state(self):
        """测试状态不变"""
        assert detect('api', HEALTHY, HEALTHY) == []
        assert detect('api', DOWN, DOWN) == []

    def test_history_scenario(self):
        """测试历史 [健康, 健康, 宕机]：第2次无事件，第3次宕机"""
        store = HistoryStore()
        kinds_per_tick = []
        for result in (HEALTHY, HEALTHY, DOWN):
            store.append('api', result)
            previous, current = store.latest_two('api')
            kinds_per_tick.append([e.kind for e in detect('api', previous, current)])

        assert kinds_per_tick == [[], [], [TransitionKind.WENT_DOWN]]

    def test_continuously_down_only_first_tick(self):
        """测试持续宕机只在第一次产生事件"""
        store = HistoryStore(capacity=2)
        events = []
        for result in (HEALTHY, DOWN, DOWN, DOWN, DOWN):
            store.append('api', result)
            events.extend(detect('api', *store.latest_two('api')))

        assert [e.kind for e in events] == [TransitionKind.WENT_DOWN]
