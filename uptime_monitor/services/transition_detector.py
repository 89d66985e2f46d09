"""状态变化检测"""

from typing import List, Optional

from ..models.health_check import CheckResult, TransitionEvent, TransitionKind


def detect(service_id: str, previous: Optional[CheckResult],
           current: CheckResult) -> List[TransitionEvent]:
    """比较相邻两次检查结果，生成状态变化事件

    规则按顺序判断：
    1. 没有上一次结果时只建立基线，不产生事件
    2. 健康 -> 不健康: WENT_DOWN
    3. 不健康 -> 健康: RECOVERED
    4. 仅在2、3都未触发时，响应由正常变慢: BECAME_SLOW

    Args:
        service_id: 服务标识
        previous: 上一次检查结果
        current: 本次检查结果

    Returns:
        状态变化事件列表，最多一个事件
    """
    if previous is None:
        return []

    if previous.healthy == current.healthy and previous.warning == current.warning:
        return []

    if previous.healthy and not current.healthy:
        kind = TransitionKind.WENT_DOWN
    elif not previous.healthy and current.healthy:
        kind = TransitionKind.RECOVERED
    elif current.warning and not previous.warning:
        kind = TransitionKind.BECAME_SLOW
    else:
        return []

    return [TransitionEvent(service_id=service_id, kind=kind,
                            previous=previous, current=current)]
