"""配置管理器"""

import os
import re
from datetime import timedelta
from typing import Dict, Any, List, Optional

import yaml

from ..utils.config_validator import ConfigValidator
from ..utils.exceptions import ConfigError, ErrorCode
from ..utils.log_manager import get_logger

# ${VAR} 或 ${VAR:-default}
_ENV_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}')

GLOBAL_DEFAULTS: Dict[str, Any] = {
    'check_interval_minutes': 30,
    'history_size': 24,
    'alert_cooldown_ms': 3600000,
    'response_time_warning_ms': 3000,
    'response_time_critical_ms': 10000,
    'max_concurrent_checks': 10,
    'send_tick_summary': True,
    'log_level': 'INFO',
}


def expand_env_vars(value: Any, environ: Optional[Dict[str, str]] = None) -> Any:
    """递归展开配置中的环境变量引用

    整个字符串只有一个引用时，展开结果按YAML标量重新解析，
    使 "${CHECK_INTERVAL_MINUTES:-30}" 得到整数30。

    Raises:
        ConfigError: 引用的环境变量未设置且没有默认值
    """
    environ = os.environ if environ is None else environ

    if isinstance(value, dict):
        return {k: expand_env_vars(v, environ) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_env_vars(v, environ) for v in value]
    if not isinstance(value, str) or '${' not in value:
        return value

    def replace(match):
        name, default = match.group(1), match.group(2)
        if name in environ:
            return environ[name]
        if default is not None:
            return default
        raise ConfigError(f"环境变量未设置: {name}")

    expanded = _ENV_PATTERN.sub(replace, value)
    if _ENV_PATTERN.fullmatch(value):
        try:
            return yaml.safe_load(expanded) if expanded else expanded
        except yaml.YAMLError:
            return expanded
    return expanded


class ConfigManager:
    """配置管理器，负责YAML配置文件的加载、环境变量展开和验证"""

    def __init__(self, config_path: str):
        """
        初始化配置管理器

        Args:
            config_path: 配置文件路径
        """
        self.config_path = config_path
        self.config: Dict[str, Any] = {}
        self.logger = get_logger('config_manager')

    def load_config(self) -> Dict[str, Any]:
        """
        加载YAML配置文件

        Returns:
            Dict[str, Any]: 配置字典，global 已填充默认值

        Raises:
            ConfigError: 配置加载或验证失败
        """
        self.logger.info(f"开始加载配置文件: {self.config_path}")

        try:
            with open(self.config_path, 'r', encoding='utf-8') as file:
                config = yaml.safe_load(file)
        except FileNotFoundError:
            raise ConfigError(f"配置文件不存在: {self.config_path}",
                              ErrorCode.CONFIG_FILE_NOT_FOUND, config_path=self.config_path)
        except PermissionError:
            raise ConfigError(f"没有权限读取配置文件: {self.config_path}",
                              config_path=self.config_path)
        except yaml.YAMLError as e:
            raise ConfigError(f"YAML格式错误: {e}", ErrorCode.CONFIG_PARSE_ERROR,
                              config_path=self.config_path)

        if config is None:
            raise ConfigError("配置文件为空", config_path=self.config_path)
        if not isinstance(config, dict):
            raise ConfigError("配置文件根节点必须是字典类型", config_path=self.config_path)

        config = expand_env_vars(config)
        self._validate_config(config)

        config['global'] = {**GLOBAL_DEFAULTS, **(config.get('global') or {})}
        config.setdefault('services', {})
        config.setdefault('alerts', [])

        self.config = config
        self.logger.info(
            f"配置验证成功，包含 {len(config['services'])} 个服务和 "
            f"{len(config['alerts'])} 个告警配置")
        return self.config

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """
        验证配置文件内容

        Raises:
            ConfigError: 配置验证失败
        """
        global_config = config.get('global') or {}
        ConfigValidator.validate_global_config(global_config)

        merged_global = {**GLOBAL_DEFAULTS, **global_config}
        if merged_global['response_time_warning_ms'] >= merged_global['response_time_critical_ms']:
            raise ConfigError("response_time_warning_ms 必须小于 response_time_critical_ms")

        services = config.get('services') or {}
        if not isinstance(services, dict):
            raise ConfigError("services配置必须是字典类型")
        if not services:
            self.logger.warning("配置中没有任何监控服务")
        for service_name, service_config in services.items():
            ConfigValidator.validate_service_config(service_name, service_config, merged_global)

        alerts = config.get('alerts') or []
        if not isinstance(alerts, list):
            raise ConfigError("alerts配置必须是列表类型")
        for alert_config in alerts:
            ConfigValidator.validate_alert_config(alert_config)

    def get_global_config(self) -> Dict[str, Any]:
        return self.config.get('global', dict(GLOBAL_DEFAULTS))

    def get_services_config(self) -> Dict[str, Any]:
        return self.config.get('services', {})

    def get_alerts_config(self) -> List[Dict[str, Any]]:
        return self.config.get('alerts', [])

    def get_check_interval(self) -> timedelta:
        return timedelta(minutes=self.get_global_config()['check_interval_minutes'])

    def get_alert_cooldown(self) -> timedelta:
        return timedelta(milliseconds=self.get_global_config()['alert_cooldown_ms'])
