"""数据模型模块"""

from .health_check import (
    ProbeOutcome, CheckResult, TransitionKind, TransitionEvent, AlertMessage, TickSummary
)

__all__ = ['ProbeOutcome', 'CheckResult', 'TransitionKind', 'TransitionEvent',
           'AlertMessage', 'TickSummary']
