"""HTTP接口探测器测试"""

import asyncio
from unittest.mock import Mock, AsyncMock, patch

import pytest
from aiohttp import ClientError

from uptime_monitor.checkers.restful_checker import RestfulHealthChecker


def mock_session_with_status(status):
    mock_response = Mock()
    mock_response.status = status

    mock_get_context = AsyncMock()
    mock_get_context.__aenter__ = AsyncMock(return_value=mock_response)
    mock_get_context.__aexit__ = AsyncMock(return_value=None)

    mock_session = Mock()
    mock_session.get = Mock(return_value=mock_get_context)
    return mock_session


class TestRestfulHealthChecker:
    """RestfulHealthChecker 测试类"""

    def setup_method(self):
        """测试前准备"""
        self.config = {
            'type': 'restful',
            'url': 'https://api.example.com/',
            'headers': {'Authorization': 'Bearer token'},
            'response_time_critical_ms': 10000
        }
        self.checker = RestfulHealthChecker('EssayBot API', self.config)

    def test_probe_url_default_health_path(self):
        """测试默认健康检查路径"""
        assert self.checker.probe_url == 'https://api.example.com/health'

    def test_probe_url_custom_path(self):
        """测试自定义健康检查路径"""
        checker = RestfulHealthChecker('api', dict(self.config, health_path='status/ping'))
        assert checker.probe_url == 'https://api.example.com/status/ping'

    def test_timeout_defaults_to_critical_threshold(self):
        """测试超时时间默认使用严重阈值"""
        assert self.checker.get_timeout_ms() == 10000
        checker = RestfulHealthChecker('api', dict(self.config, timeout_ms=2500))
        assert checker.get_timeout_ms() == 2500

    def test_validate_config(self):
        """测试配置验证"""
        assert self.checker.validate_config() is True
        assert RestfulHealthChecker('api', dict(self.config, url='tcp://x')).validate_config() is False
        assert RestfulHealthChecker('api', dict(self.config, timeout_ms=0)).validate_config() is False
        assert RestfulHealthChecker('api', dict(self.config, headers=['x'])).validate_config() is False

    @pytest.mark.asyncio
    async def test_probe_success(self):
        """测试收到200响应"""
        mock_session = mock_session_with_status(200)

        with patch('aiohttp.ClientSession') as mock_client_session:
            mock_client_session.return_value.__aenter__ = AsyncMock(return_value=mock_session)
            mock_client_session.return_value.__aexit__ = AsyncMock(return_value=None)

            outcome = await self.checker.probe()

        assert outcome.ok is True
        assert outcome.status_code == 200
        assert outcome.error_text is None
        assert outcome.elapsed_ms >= 0
        mock_session.get.assert_called_once_with(
            'https://api.example.com/health', headers={'Authorization': 'Bearer token'})

    @pytest.mark.asyncio
    async def test_probe_client_error_status_is_response(self):
        """测试4xx仍算收到响应，由分类逻辑判定不健康"""
        mock_session = mock_session_with_status(404)

        with patch('aiohttp.ClientSession') as mock_client_session:
            mock_client_session.return_value.__aenter__ = AsyncMock(return_value=mock_session)
            mock_client_session.return_value.__aexit__ = AsyncMock(return_value=None)

            outcome = await self.checker.probe()

        assert outcome.ok is True
        assert outcome.status_code == 404

    @pytest.mark.asyncio
    async def test_probe_server_error(self):
        """测试5xx视为失败"""
        mock_session = mock_session_with_status(503)

        with patch('aiohttp.ClientSession') as mock_client_session:
            mock_client_session.return_value.__aenter__ = AsyncMock(return_value=mock_session)
            mock_client_session.return_value.__aexit__ = AsyncMock(return_value=None)

            outcome = await self.checker.probe()

        assert outcome.ok is False
        assert outcome.status_code == 503
        assert outcome.error_text == 'HTTP 503'

    @pytest.mark.asyncio
    async def test_probe_timeout(self):
        """测试请求超时"""
        mock_session = Mock()
        mock_session.get = Mock(side_effect=asyncio.TimeoutError())

        with patch('aiohttp.ClientSession') as mock_client_session:
            mock_client_session.return_value.__aenter__ = AsyncMock(return_value=mock_session)
            mock_client_session.return_value.__aexit__ = AsyncMock(return_value=None)

            outcome = await self.checker.probe()

        assert outcome.ok is False
        assert outcome.error_text == 'timeout'
        assert outcome.status_code is None

    @pytest.mark.asyncio
    async def test_probe_connection_error(self):
        """测试连接失败"""
        mock_session = Mock()
        mock_session.get = Mock(side_effect=ClientError('Connection refused'))

        with patch('aiohttp.ClientSession') as mock_client_session:
            mock_client_session.return_value.__aenter__ = AsyncMock(return_value=mock_session)
            mock_client_session.return_value.__aexit__ = AsyncMock(return_value=None)

            outcome = await self.checker.probe()

        assert outcome.ok is False
        assert outcome.error_text == 'Connection refused'
