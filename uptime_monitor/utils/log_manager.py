"""
日志管理器模块

统一管理控制台和滚动文件日志，日志文件大小支持 "10m" 这类写法。
"""

import logging
import logging.handlers
import re
import sys
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, Any, List, Union


class LogLevel(Enum):
    """日志级别枚举"""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


_SIZE_PATTERN = re.compile(r'^\s*(\d+)\s*([kmg]?)b?\s*$', re.IGNORECASE)
_SIZE_UNITS = {'': 1, 'k': 1024, 'm': 1024 ** 2, 'g': 1024 ** 3}


def parse_size(value: Union[int, str]) -> int:
    """
    解析日志文件大小

    Args:
        value: 字节数，或 "512k"、"10m"、"1g" 形式的字符串

    Returns:
        int: 字节数

    Raises:
        ValueError: 无法解析
    """
    if isinstance(value, bool):
        raise ValueError(f"无效的文件大小: {value}")
    if isinstance(value, int):
        if value <= 0:
            raise ValueError(f"文件大小必须为正数: {value}")
        return value

    match = _SIZE_PATTERN.match(str(value))
    if not match or int(match.group(1)) <= 0:
        raise ValueError(f"无效的文件大小: {value}")
    return int(match.group(1)) * _SIZE_UNITS[match.group(2).lower()]


class LogManager:
    """
    日志管理器类（单例）

    - 控制台输出
    - 可选的 RotatingFileHandler 文件输出
    - 全局日志级别
    """

    _instance: Optional['LogManager'] = None
    _initialized: bool = False

    def __new__(cls) -> 'LogManager':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._loggers: Dict[str, logging.Logger] = {}
        self._file_format = (
            '%(asctime)s - %(name)s - %(levelname)s - '
            '[%(filename)s:%(lineno)d] - %(message)s'
        )
        self._console_format = '%(asctime)s - %(levelname)s - %(message)s'
        self._date_format = '%Y-%m-%d %H:%M:%S'

        self._log_level = LogLevel.INFO
        self._log_file: Optional[str] = None
        self._max_file_size = 10 * 1024 * 1024  # 10MB
        self._backup_count = 5
        self._enable_console = True
        self._enable_file = False

        self._initialized = True

    @property
    def level(self) -> LogLevel:
        return self._log_level

    def configure(self, config: Dict[str, Any]) -> None:
        """
        配置日志管理器

        Args:
            config: 日志配置字典，可选键：
                - log_level: DEBUG / INFO / WARNING / ERROR / CRITICAL
                - log_file: 日志文件路径
                - max_file_size: 最大文件大小（字节数或 "10m"）
                - backup_count: 备份文件数量
                - enable_console: 是否输出到控制台
                - enable_file: 是否输出到文件
        """
        if 'log_level' in config:
            level_str = str(config['log_level']).upper()
            if level_str not in LogLevel.__members__:
                raise ValueError(f"无效的日志级别: {level_str}")
            self._log_level = LogLevel[level_str]

        if config.get('log_file'):
            self._log_file = config['log_file']
            self._enable_file = True

        if 'max_file_size' in config:
            self._max_file_size = parse_size(config['max_file_size'])

        if 'backup_count' in config:
            self._backup_count = int(config['backup_count'])

        if 'enable_console' in config:
            self._enable_console = bool(config['enable_console'])

        if 'enable_file' in config:
            self._enable_file = bool(config['enable_file']) and bool(self._log_file)

        # 已创建的日志记录器按新配置重建处理器
        for logger in self._loggers.values():
            self._attach_handlers(logger)

    def get_logger(self, name: str) -> logging.Logger:
        """
        获取指定名称的日志记录器

        Args:
            name: 日志记录器名称

        Returns:
            配置好的日志记录器实例
        """
        if name in self._loggers:
            return self._loggers[name]

        logger = logging.getLogger(name)
        self._attach_handlers(logger)
        logger.propagate = False

        self._loggers[name] = logger
        return logger

    def _attach_handlers(self, logger: logging.Logger) -> None:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

        logger.setLevel(self._log_level.value)
        for handler in self._build_handlers():
            logger.addHandler(handler)

    def _build_handlers(self) -> List[logging.Handler]:
        handlers: List[logging.Handler] = []

        if self._enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setFormatter(
                logging.Formatter(self._console_format, datefmt=self._date_format))
            handlers.append(console_handler)

        if self._enable_file and self._log_file:
            Path(self._log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                self._log_file,
                maxBytes=self._max_file_size,
                backupCount=self._backup_count,
                encoding='utf-8'
            )
            file_handler.setFormatter(
                logging.Formatter(self._file_format, datefmt=self._date_format))
            handlers.append(file_handler)

        for handler in handlers:
            handler.setLevel(self._log_level.value)
        return handlers

    def set_level(self, level: LogLevel) -> None:
        """
        设置全局日志级别

        Args:
            level: 新的日志级别
        """
        self._log_level = level
        for logger in self._loggers.values():
            logger.setLevel(level.value)
            for handler in logger.handlers:
                handler.setLevel(level.value)

    def get_log_stats(self) -> Dict[str, Any]:
        """获取日志配置概要"""
        stats = {
            'loggers_count': len(self._loggers),
            'log_level': self._log_level.name,
            'file_logging_enabled': self._enable_file,
            'console_logging_enabled': self._enable_console,
            'log_file': self._log_file,
            'max_file_size': self._max_file_size,
            'backup_count': self._backup_count
        }

        if self._log_file and Path(self._log_file).exists():
            stats['current_log_size'] = Path(self._log_file).stat().st_size

        return stats

    def cleanup(self) -> None:
        """关闭所有处理器"""
        for logger in self._loggers.values():
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                handler.close()

        self._loggers.clear()


# 全局日志管理器实例
log_manager = LogManager()


def get_logger(name: str) -> logging.Logger:
    """获取日志记录器的便捷函数"""
    return log_manager.get_logger(name)


def configure_logging(config: Dict[str, Any]) -> None:
    """配置日志系统的便捷函数"""
    log_manager.configure(config)
