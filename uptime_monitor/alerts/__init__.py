"""告警模块"""

from .base import BaseAlerter
from .http_alerter import HTTPAlerter
from .integrator import AlertIntegrator
from .manager import AlertManager
from .teams_alerter import TeamsAlerter

__all__ = [
    'BaseAlerter',
    'AlertManager',
    'HTTPAlerter',
    'TeamsAlerter',
    'AlertIntegrator'
]
