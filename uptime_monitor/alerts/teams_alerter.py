"""Microsoft Teams 告警器

通过 Power Automate 工作流 webhook 发送 Adaptive Card。
"""

import asyncio
from typing import Dict, Any, List
from urllib.parse import urlparse

import aiohttp

from .base import BaseAlerter
from ..models.health_check import AlertMessage
from ..utils.exceptions import AlertConfigError, AlertSendError
from ..utils.log_manager import get_logger

# Adaptive Card 标题颜色
_SEVERITY_COLORS = {
    'critical': 'Attention',
    'error': 'Attention',
    'warning': 'Warning',
    'info': 'Good',
}

_SUCCESS_STATUSES = (200, 202)


class TeamsAlerter(BaseAlerter):
    """Teams 告警器，发送 Adaptive Card"""

    def __init__(self, name: str, config: Dict[str, Any]):
        super().__init__(name, config)
        self.logger = get_logger(f'alerter.teams.{self.name}')
        self.url = config.get('url', '')
        self.headers = {'Content-Type': 'application/json'}
        self.headers.update(config.get('headers', {}))

        if not self.validate_config():
            raise AlertConfigError(f"Teams告警器配置无效: {name}", alert_name=name)

    def validate_config(self) -> bool:
        parsed_url = urlparse(self.url)
        if parsed_url.scheme not in ('http', 'https') or not parsed_url.netloc:
            self.logger.error(f"Teams告警器 {self.name} URL格式无效")
            return False

        timeout = self.get_timeout()
        if not isinstance(timeout, (int, float)) or timeout <= 0:
            self.logger.error(f"Teams告警器 {self.name} 超时时间必须为正数")
            return False

        return True

    async def send_alert(self, message: AlertMessage) -> bool:
        """
        发送 Adaptive Card

        Args:
            message: 告警消息

        Returns:
            bool: webhook 返回 200/202 时为True

        Raises:
            AlertSendError: 网络错误或超时
        """
        card = self.build_card(message)
        timeout = aiohttp.ClientTimeout(total=self.get_timeout())

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.url, json=card, headers=self.headers) as response:
                    if response.status in _SUCCESS_STATUSES:
                        self.logger.info(
                            f"Teams告警发送成功: {message.title} (状态码: {response.status})")
                        return True

                    response_text = await response.text()
                    self.logger.error(
                        f"Teams告警发送失败 (状态码: {response.status}, "
                        f"响应: {response_text[:200]})")
                    return False

        except asyncio.TimeoutError:
            raise AlertSendError("Teams webhook 请求超时", alert_name=self.name)
        except aiohttp.ClientError as e:
            raise AlertSendError(f"Teams webhook 请求失败: {e}", alert_name=self.name, cause=e)

    def build_card(self, message: AlertMessage) -> Dict[str, Any]:
        """
        构造 Adaptive Card

        Args:
            message: 告警消息

        Returns:
            Dict[str, Any]: Adaptive Card JSON
        """
        body: List[Dict[str, Any]] = [
            {
                'type': 'TextBlock',
                'text': message.title or '服务监控告警',
                'weight': 'Bolder',
                'size': 'Large',
                'color': _SEVERITY_COLORS.get(message.severity, 'Default')
            },
            {
                'type': 'TextBlock',
                'text': message.message or '无详细信息',
                'wrap': True,
                'spacing': 'Medium'
            }
        ]

        if message.services:
            body.append({
                'type': 'FactSet',
                'facts': [self._service_fact(name, status)
                          for name, status in message.services.items()],
                'spacing': 'Medium'
            })

        body.append({
            'type': 'TextBlock',
            'text': f"告警时间: {message.timestamp.strftime('%Y-%m-%d %H:%M:%S')}"
                    f" | 级别: {message.severity.upper()}",
            'size': 'Small',
            'spacing': 'Medium'
        })

        return {
            'type': 'AdaptiveCard',
            'version': '1.0',
            'body': body,
            'actions': [
                {
                    'type': 'Action.Submit',
                    'title': message.action,
                    'data': {
                        'action': 'acknowledge',
                        'timestamp': message.timestamp.isoformat()
                    }
                }
            ]
        }

    @staticmethod
    def _service_fact(name: str, status: Dict[str, Any]) -> Dict[str, str]:
        response_time = status.get('response_time_ms')
        response_text = f" ({response_time}ms)" if response_time is not None else ''

        if status.get('healthy'):
            icon = '⚠️' if status.get('warning') else '✅'
            value = f"正常{response_text}"
        else:
            icon = '❌'
            error = status.get('error_text')
            value = f"不可用{' - ' + error if error else ''}"

        return {'name': f"{icon} {name}", 'value': value}
