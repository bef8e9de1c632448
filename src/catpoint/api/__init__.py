"""Catpoint API"""

from .manager import create_app, get_service, router, set_service

__all__ = [
    'create_app',
    'get_service',
    'router',
    'set_service',
]
