"""Teams告警器测试"""

import asyncio
from datetime import datetime
from unittest.mock import Mock, AsyncMock, patch

import pytest
from aiohttp import ClientError

from uptime_monitor.alerts.teams_alerter import TeamsAlerter
from uptime_monitor.models.health_check import AlertMessage
from uptime_monitor.utils.exceptions import AlertConfigError, AlertSendError

WEBHOOK_URL = 'https://prod-00.westus.logic.azure.com/workflows/abc/triggers/manual/paths/invoke'


def mock_session_with_status(status, text=''):
    mock_response = Mock()
    mock_response.status = status
    mock_response.text = AsyncMock(return_value=text)

    mock_post_context = AsyncMock()
    mock_post_context.__aenter__ = AsyncMock(return_value=mock_response)
    mock_post_context.__aexit__ = AsyncMock(return_value=None)

    mock_session = Mock()
    mock_session.post = Mock(return_value=mock_post_context)
    return mock_session


class TestTeamsAlerter:
    """Teams告警器测试类"""

    def setup_method(self):
        """测试前准备"""
        self.alerter = TeamsAlerter('teams', {'type': 'teams', 'url': WEBHOOK_URL})
        self.message = AlertMessage(
            title='🚨 服务宕机告警',
            message='Dash Portal 当前不可用: HTTP 503',
            status='DOWN',
            severity='critical',
            service_name='Dash Portal',
            timestamp=datetime(2024, 3, 1, 9, 15, 0),
            error_message='HTTP 503',
            action='检查 Dash Portal 的运行状态',
            services={
                'Dash Portal': {'healthy': False, 'warning': False,
                                'response_time_ms': 120, 'error_text': 'HTTP 503'},
                'EssayBot API': {'healthy': True, 'warning': True,
                                 'response_time_ms': 4200, 'error_text': None},
            }
        )

    def test_invalid_url(self):
        """测试无效webhook地址"""
        with pytest.raises(AlertConfigError):
            TeamsAlerter('teams', {'url': 'ftp://example.com'})

    def test_invalid_timeout(self):
        """测试无效超时时间"""
        with pytest.raises(AlertConfigError):
            TeamsAlerter('teams', {'url': WEBHOOK_URL, 'timeout': 0})

    def test_build_card_structure(self):
        """测试 Adaptive Card 结构"""
        card = self.alerter.build_card(self.message)

        assert card['type'] == 'AdaptiveCard'
        assert card['version'] == '1.0'
        title, text, facts, footer = card['body']
        assert title['text'] == '🚨 服务宕机告警'
        assert title['color'] == 'Attention'
        assert text['text'] == 'Dash Portal 当前不可用: HTTP 503'
        assert facts['type'] == 'FactSet'
        assert '2024-03-01 09:15:00' in footer['text']
        assert 'CRITICAL' in footer['text']
        assert card['actions'][0]['type'] == 'Action.Submit'
        assert card['actions'][0]['title'] == '检查 Dash Portal 的运行状态'

    def test_service_facts(self):
        """测试服务状态行"""
        facts = self.alerter.build_card(self.message)['body'][2]['facts']

        assert facts[0] == {'name': '❌ Dash Portal', 'value': '不可用 - HTTP 503'}
        assert facts[1] == {'name': '⚠️ EssayBot API', 'value': '正常 (4200ms)'}

    def test_card_without_services(self):
        """测试没有服务列表时不生成FactSet"""
        message = AlertMessage(title='✅ 服务已恢复', message='ok', status='UP')
        card = self.alerter.build_card(message)

        assert [block['type'] for block in card['body']] == ['TextBlock'] * 3
        assert card['body'][0]['color'] == 'Good'

    @pytest.mark.asyncio
    @pytest.mark.parametrize('status', [200, 202])
    async def test_send_alert_accepted(self, status):
        """测试webhook接受请求"""
        mock_session = mock_session_with_status(status)

        with patch('aiohttp.ClientSession') as mock_client_session:
            mock_client_session.return_value.__aenter__ = AsyncMock(return_value=mock_session)
            mock_client_session.return_value.__aexit__ = AsyncMock(return_value=None)

            assert await self.alerter.send_alert(self.message) is True

            kwargs = mock_session.post.call_args.kwargs
            assert kwargs['json']['type'] == 'AdaptiveCard'
            assert kwargs['headers']['Content-Type'] == 'application/json'

    @pytest.mark.asyncio
    async def test_send_alert_rejected(self):
        """测试webhook返回错误状态码"""
        mock_session = mock_session_with_status(400, 'Bad Request')

        with patch('aiohttp.ClientSession') as mock_client_session:
            mock_client_session.return_value.__aenter__ = AsyncMock(return_value=mock_session)
            mock_client_session.return_value.__aexit__ = AsyncMock(return_value=None)

            assert await self.alerter.send_alert(self.message) is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize('error', [asyncio.TimeoutError(), ClientError('连接被拒绝')])
    async def test_send_alert_transport_error(self, error):
        """测试网络错误和超时"""
        mock_session = Mock()
        mock_session.post = Mock(side_effect=error)

        with patch('aiohttp.ClientSession') as mock_client_session:
            mock_client_session.return_value.__aenter__ = AsyncMock(return_value=mock_session)
            mock_client_session.return_value.__aexit__ = AsyncMock(return_value=None)

            with pytest.raises(AlertSendError):
                await self.alerter.send_alert(self.message)
