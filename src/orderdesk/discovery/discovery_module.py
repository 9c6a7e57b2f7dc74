"""
DiscoveryModule: building block for service discovery.
Configure via .static(...); register with app.register(discovery).
"""
from __future__ import annotations

from orderdesk.core.app import Application
from orderdesk.core.module import Module
from orderdesk.discovery.protocol import ServiceDiscovery, StaticDiscovery


class DiscoveryModule(Module):
    """Available in the container as ServiceDiscovery once registered."""

    def __init__(self) -> None:
        self._adapter: ServiceDiscovery | None = None

    def static(self, services: dict[str, str]) -> DiscoveryModule:
        """Static config: service name -> URL."""
        self._adapter = StaticDiscovery(services)
        return self

    @property
    def discovery(self) -> ServiceDiscovery:
        if self._adapter is None:
            self._adapter = StaticDiscovery({})
        return self._adapter

    def register_into(self, app: Application) -> None:
        app.container.register_instance(ServiceDiscovery, self.discovery)
