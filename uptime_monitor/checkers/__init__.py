"""探测器模块"""

from .base import BaseHealthChecker
from .factory import HealthCheckerFactory, health_checker_factory, register_checker
from .rag_pipeline_checker import RagPipelineHealthChecker
from .restful_checker import RestfulHealthChecker

__all__ = ['BaseHealthChecker', 'HealthCheckerFactory', 'health_checker_factory',
           'register_checker', 'RestfulHealthChecker', 'RagPipelineHealthChecker']
