"""配置验证工具"""

from typing import Dict, Any, Optional
from urllib.parse import urlparse

from ..checkers import health_checker_factory
from .exceptions import ConfigError
from .log_manager import LogLevel, parse_size

SUPPORTED_ALERT_TYPES = ['teams', 'http']


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _is_http_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    parsed = urlparse(value)
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


class ConfigValidator:
    """配置验证器"""

    @staticmethod
    def validate_service_config(service_name: str, config: Dict[str, Any],
                                global_config: Optional[Dict[str, Any]] = None) -> None:
        """
        验证服务配置

        Args:
            service_name: 服务名称
            config: 服务配置
            global_config: 全局配置，用于校验继承的阈值

        Raises:
            ConfigError: 配置验证失败
        """
        if not isinstance(config, dict):
            raise ConfigError(f"服务 '{service_name}' 的配置必须是字典类型")

        for field in ('type', 'url'):
            if field not in config:
                raise ConfigError(f"服务 '{service_name}' 缺少必需的配置项: {field}")

        service_type = config.get('type')
        if not health_checker_factory.is_type_supported(service_type):
            raise ConfigError(
                f"服务 '{service_name}' 的类型 '{service_type}' 不受支持。"
                f"支持的类型: {health_checker_factory.get_supported_types()}")

        if not _is_http_url(config['url']):
            raise ConfigError(f"服务 '{service_name}' 的URL无效: {config['url']}")

        for field in ('timeout_ms', 'response_time_warning_ms', 'response_time_critical_ms'):
            if field in config and not _is_positive_int(config[field]):
                raise ConfigError(f"服务 '{service_name}' 的 {field} 必须是正整数")

        if 'headers' in config and not isinstance(config['headers'], dict):
            raise ConfigError(f"服务 '{service_name}' 的 headers 必须是字典类型")

        global_config = global_config or {}
        warning = config.get('response_time_warning_ms',
                             global_config.get('response_time_warning_ms', 3000))
        critical = config.get('response_time_critical_ms',
                              global_config.get('response_time_critical_ms', 10000))
        if warning >= critical:
            raise ConfigError(
                f"服务 '{service_name}' 的告警阈值({warning}ms)必须小于严重阈值({critical}ms)")

    @staticmethod
    def validate_alert_config(alert_config: Dict[str, Any]) -> None:
        """
        验证告警配置

        Args:
            alert_config: 告警配置

        Raises:
            ConfigError: 配置验证失败
        """
        if not isinstance(alert_config, dict):
            raise ConfigError("告警配置必须是字典类型")

        for field in ('name', 'type', 'url'):
            if field not in alert_config:
                raise ConfigError(f"告警配置缺少必需的配置项: {field}")

        if alert_config['type'] not in SUPPORTED_ALERT_TYPES:
            raise ConfigError(
                f"告警 '{alert_config['name']}' 的类型 '{alert_config['type']}' 不受支持。"
                f"支持的类型: {SUPPORTED_ALERT_TYPES}")

        if not _is_http_url(alert_config['url']):
            raise ConfigError(f"告警 '{alert_config['name']}' 的URL无效")

    @staticmethod
    def validate_global_config(global_config: Dict[str, Any]) -> None:
        """
        验证全局配置

        Args:
            global_config: 全局配置

        Raises:
            ConfigError: 配置验证失败
        """
        if not isinstance(global_config, dict):
            raise ConfigError("全局配置必须是字典类型")

        for field in ('check_interval_minutes', 'response_time_warning_ms',
                      'response_time_critical_ms', 'max_concurrent_checks'):
            value = global_config.get(field)
            if value is not None and not _is_positive_int(value):
                raise ConfigError(f"{field} 必须是正整数")

        history_size = global_config.get('history_size')
        if history_size is not None:
            if not isinstance(history_size, int) or isinstance(history_size, bool) \
                    or history_size < 2:
                raise ConfigError("history_size 必须是不小于2的整数")

        cooldown = global_config.get('alert_cooldown_ms')
        if cooldown is not None:
            if not isinstance(cooldown, int) or isinstance(cooldown, bool) or cooldown < 0:
                raise ConfigError("alert_cooldown_ms 必须是非负整数")

        send_summary = global_config.get('send_tick_summary')
        if send_summary is not None and not isinstance(send_summary, bool):
            raise ConfigError("send_tick_summary 必须是布尔值")

        log_level = global_config.get('log_level')
        if log_level is not None and str(log_level).upper() not in LogLevel.__members__:
            raise ConfigError(
                f"无效的日志级别: {log_level}，支持: {list(LogLevel.__members__)}")

        if 'max_log_size' in global_config:
            try:
                parse_size(global_config['max_log_size'])
            except ValueError as e:
                raise ConfigError(f"max_log_size 无效: {e}")

        backup_count = global_config.get('log_backup_count')
        if backup_count is not None:
            if not isinstance(backup_count, int) or isinstance(backup_count, bool) \
                    or backup_count < 0:
                raise ConfigError("log_backup_count 必须是非负整数")
