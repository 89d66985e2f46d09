"""告警去重闸门

按 (服务, 告警类型) 记录最近一次成功发送时间，冷却期内的同类告警被抑制。
判断与记录分离：should_emit 不修改状态，发送成功后由调用方调用 record_emitted。
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

from ..models.health_check import TransitionKind

DEFAULT_COOLDOWN = timedelta(hours=1)


class AlertGate:
    """告警冷却闸门"""

    def __init__(self, cooldown: timedelta = DEFAULT_COOLDOWN):
        """
        Args:
            cooldown: 同一告警键两次发送之间的最小间隔
        """
        if cooldown < timedelta(0):
            raise ValueError("告警冷却时间不能为负数")

        self.cooldown = cooldown
        self._last_sent: Dict[str, datetime] = {}
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def alert_key(service_id: str, kind: TransitionKind) -> str:
        """告警去重键，如 "EssayBot API_down" """
        return f"{service_id}_{kind.alert_suffix}"

    def should_emit(self, service_id: str, kind: TransitionKind, now: datetime) -> bool:
        """判断告警是否允许发送，不修改状态

        Args:
            service_id: 服务标识
            kind: 状态变化类型
            now: 当前时间

        Returns:
            bool: 冷却期外返回True
        """
        last_sent = self._last_sent.get(self.alert_key(service_id, kind))
        if last_sent is None:
            return True

        if now - last_sent < self.cooldown:
            self.logger.debug(
                f"告警冷却中，抑制发送: {self.alert_key(service_id, kind)} "
                f"(上次发送: {last_sent.isoformat()})")
            return False
        return True

    def record_emitted(self, service_id: str, kind: TransitionKind, now: datetime):
        """记录告警已成功发送，开始新的冷却期"""
        self._last_sent[self.alert_key(service_id, kind)] = now

    def get_last_emitted(self, service_id: str, kind: TransitionKind) -> Optional[datetime]:
        """获取告警键最近一次发送时间"""
        return self._last_sent.get(self.alert_key(service_id, kind))

    def get_ledger(self) -> Dict[str, datetime]:
        """获取告警发送记录副本"""
        return dict(self._last_sent)
