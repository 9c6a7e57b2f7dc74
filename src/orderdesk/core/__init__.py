from orderdesk.core.app import Application
from orderdesk.core.container import Container
from orderdesk.core.module import Module
from orderdesk.core.config import Config, Settings
from orderdesk.core.log import configure_logging

__all__ = [
    "Application",
    "Container",
    "Module",
    "Config",
    "Settings",
    "configure_logging",
]
