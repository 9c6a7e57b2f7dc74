"""Service Discovery protocol: resolve(service_name) -> URL(s)."""
from typing import Protocol, runtime_checkable


@runtime_checkable
class ServiceDiscovery(Protocol):
    """How to resolve services by name (static config, Consul, etcd)."""

    def resolve(self, service_name: str) -> list[str]:
        """Return list of URLs; empty when the service is unknown."""
        ...


class StaticDiscovery:
    """Discovery from static config, e.g. Settings.services."""

    def __init__(self, services: dict[str, str]) -> None:
        self._services = {name: url for name, url in services.items() if url}

    def resolve(self, service_name: str) -> list[str]:
        url = self._services.get(service_name)
        return [url] if url else []
