from orderdesk.discovery.discovery_module import DiscoveryModule
from orderdesk.discovery.protocol import ServiceDiscovery, StaticDiscovery

__all__ = ["DiscoveryModule", "ServiceDiscovery", "StaticDiscovery"]
