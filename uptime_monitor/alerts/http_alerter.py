"""HTTP告警器实现"""

import asyncio
import json
from typing import Dict, Any
from urllib.parse import urlparse

import aiohttp

from .base import BaseAlerter
from ..models.health_check import AlertMessage
from ..utils.exceptions import AlertConfigError, AlertSendError
from ..utils.log_manager import get_logger

# JSON模板中需要转义的字符
_JSON_ESCAPES = [
    ('\\', '\\\\'),
    ('"', '\\"'),
    ('\n', '\\n'),
    ('\r', '\\r'),
    ('\t', '\\t'),
]


class HTTPAlerter(BaseAlerter):
    """通用HTTP webhook告警器

    未配置模板时发送默认JSON负载；模板使用 {{variable}} 占位符，
    渲染结果是合法JSON时按JSON发送，否则按文本发送。发送失败不重试。
    """

    def __init__(self, name: str, config: Dict[str, Any]):
        """
        初始化HTTP告警器

        Args:
            name: 告警器名称
            config: 告警器配置
        """
        super().__init__(name, config)
        self.logger = get_logger(f'alerter.http.{self.name}')

        self.url = config.get('url', '')
        self.method = config.get('method', 'POST').upper()
        self.headers = config.get('headers', {})
        self.template = config.get('template', '')

        if not self.validate_config():
            raise AlertConfigError(f"HTTP告警器配置无效: {name}", alert_name=name)

    def validate_config(self) -> bool:
        """
        验证配置参数是否有效

        Returns:
            bool: 配置是否有效
        """
        if not self.url:
            self.logger.error(f"HTTP告警器 {self.name} 缺少URL配置")
            return False

        parsed_url = urlparse(self.url)
        if not parsed_url.scheme or not parsed_url.netloc:
            self.logger.error(f"HTTP告警器 {self.name} URL格式无效: {self.url}")
            return False

        valid_methods = ['POST', 'PUT', 'PATCH']
        if self.method not in valid_methods:
            self.logger.error(
                f"HTTP告警器 {self.name} 不支持的HTTP方法: {self.method}, "
                f"支持的方法: {valid_methods}"
            )
            return False

        if self.template is not None and not isinstance(self.template, str):
            self.logger.error(f"HTTP告警器 {self.name} 模板必须是字符串")
            return False

        if self.template and not self.template.strip():
            self.logger.error(f"HTTP告警器 {self.name} 模板不能为空")
            return False

        return True

    async def send_alert(self, message: AlertMessage) -> bool:
        """
        发送告警消息

        Args:
            message: 告警消息对象

        Returns:
            bool: 收到2xx响应时为True

        Raises:
            AlertSendError: 网络错误、超时或模板渲染失败
        """
        self.logger.debug(f"发送告警: {message.title} (状态: {message.status})")
        request_data = self._prepare_request_data(message)
        timeout = aiohttp.ClientTimeout(total=self.get_timeout())

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.request(
                        method=self.method,
                        url=self.url,
                        headers=self.headers,
                        **request_data
                ) as response:
                    if 200 <= response.status < 300:
                        self.logger.info(
                            f"HTTP告警器 {self.name} 发送成功 (状态码: {response.status})")
                        return True

                    response_text = await response.text()
                    self.logger.warning(
                        f"HTTP告警器 {self.name} 收到错误响应 "
                        f"(状态码: {response.status}, 响应: {response_text[:200]})"
                    )
                    return False

        except asyncio.TimeoutError:
            self.logger.error(f"HTTP告警器 {self.name} 请求超时")
            raise AlertSendError("HTTP请求超时", alert_name=self.name)
        except aiohttp.ClientError as e:
            self.logger.error(f"HTTP告警器 {self.name} 网络请求失败: {e}")
            raise AlertSendError(f"HTTP请求失败: {e}", alert_name=self.name, cause=e)

    def _prepare_request_data(self, message: AlertMessage) -> Dict[str, Any]:
        """
        准备HTTP请求数据

        Args:
            message: 告警消息

        Returns:
            Dict[str, Any]: 请求参数（json 或 data）
        """
        if not self.template:
            return {'json': self._create_default_payload(message)}

        rendered_content = self._render_template(self.template, message)
        try:
            return {'json': json.loads(rendered_content)}
        except json.JSONDecodeError:
            return {'data': rendered_content}

    def _render_template(self, template_str: str, message: AlertMessage) -> str:
        """
        渲染消息模板

        Args:
            template_str: 模板字符串
            message: 告警消息

        Returns:
            str: 渲染后的消息
        """
        template_vars = {
            'title': message.title,
            'message': message.message,
            'service_name': message.service_name or '',
            'status': message.status,
            'severity': message.severity,
            'timestamp': message.timestamp.strftime('%Y-%m-%d %H:%M:%S'),
            'error_message': message.error_message or '无',
            'response_time_ms': (str(message.response_time_ms)
                                 if message.response_time_ms is not None else '未知'),
            'action': message.action
        }
        for key, value in message.metadata.items():
            template_vars[f'metadata_{key}'] = str(value)

        stripped = template_str.strip()
        # 以占位符开头的模板按文本处理
        is_json_template = (stripped.startswith('{') and not stripped.startswith('{{')
                            and stripped.endswith('}'))

        rendered = template_str
        for key, value in template_vars.items():
            safe_value = str(value)
            if is_json_template:
                for raw, escaped in _JSON_ESCAPES:
                    safe_value = safe_value.replace(raw, escaped)
            rendered = rendered.replace(f'{{{{{key}}}}}', safe_value)

        if is_json_template:
            try:
                json.loads(rendered)
            except json.JSONDecodeError as e:
                self.logger.error(f"渲染后的JSON格式无效: {e}")
                raise AlertSendError(f"渲染后的JSON格式无效: {e}", alert_name=self.name)

        return rendered

    def _create_default_payload(self, message: AlertMessage) -> Dict[str, Any]:
        """创建默认的JSON负载"""
        return {
            'title': message.title,
            'message': message.message,
            'service_name': message.service_name,
            'status': message.status,
            'severity': message.severity,
            'timestamp': message.timestamp.isoformat(),
            'error_message': message.error_message,
            'response_time_ms': message.response_time_ms,
            'action': message.action,
            'services': message.services,
            'metadata': message.metadata
        }
