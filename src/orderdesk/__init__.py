"""
orderdesk: orders service for a distributed e-commerce backend.
Application is composed from module objects via app.register(module); see orderdesk.main.build_app.
"""
from orderdesk.core import Application, Config, Settings, configure_logging

__all__ = [
    "Application",
    "Config",
    "Settings",
    "configure_logging",
]
