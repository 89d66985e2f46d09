"""探测器工厂"""

from typing import Dict, Type, Any, List

from .base import BaseHealthChecker
from ..utils.exceptions import CheckerError, ErrorCode


class HealthCheckerFactory:
    """探测器工厂类，按服务类型创建探测器"""

    def __init__(self):
        self._checkers: Dict[str, Type[BaseHealthChecker]] = {}

    def register_checker(self, service_type: str, checker_class: Type[BaseHealthChecker]):
        """
        注册探测器类

        Args:
            service_type: 服务类型名称
            checker_class: 探测器类

        Raises:
            CheckerError: 注册失败
        """
        if not issubclass(checker_class, BaseHealthChecker):
            raise CheckerError(f"探测器类 {checker_class.__name__} 必须继承自 BaseHealthChecker")

        if service_type in self._checkers:
            raise CheckerError(f"服务类型 '{service_type}' 已经注册了探测器")

        self._checkers[service_type] = checker_class

    def create_checker(self, service_name: str, service_config: Dict[str, Any]) -> BaseHealthChecker:
        """
        创建探测器实例

        Args:
            service_name: 服务标识
            service_config: 服务配置

        Returns:
            BaseHealthChecker: 探测器实例

        Raises:
            CheckerError: 服务类型不支持或配置无效
        """
        service_type = service_config.get('type')
        if not service_type:
            raise CheckerError(f"服务 '{service_name}' 缺少 'type' 配置",
                               service_name=service_name)

        if service_type not in self._checkers:
            raise CheckerError(f"不支持的服务类型: '{service_type}'",
                               ErrorCode.UNSUPPORTED_SERVICE_TYPE,
                               service_name=service_name)

        checker = self._checkers[service_type](service_name, service_config)
        if not checker.validate_config():
            raise CheckerError(f"服务 '{service_name}' 的配置验证失败",
                               service_name=service_name)

        return checker

    def get_supported_types(self) -> List[str]:
        """获取支持的服务类型列表"""
        return list(self._checkers.keys())

    def is_type_supported(self, service_type: str) -> bool:
        """检查是否支持指定的服务类型"""
        return service_type in self._checkers


# 全局工厂实例
health_checker_factory = HealthCheckerFactory()


def register_checker(service_type: str):
    """
    装饰器：注册探测器类

    Args:
        service_type: 服务类型名称
    """
    def decorator(checker_class: Type[BaseHealthChecker]):
        health_checker_factory.register_checker(service_type, checker_class)
        return checker_class

    return decorator
