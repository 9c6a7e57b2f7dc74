"""Domain layer base classes."""
from orderdesk.domain.repository import Repository

__all__ = ["Repository"]
