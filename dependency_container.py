"""
Dependency Injection Container for the chat server registry

The registry is one explicitly constructed object, handed to the
command layer through this container rather than a module global.
"""

from typing import Dict, Any, Callable, Optional, TypeVar, Type
from dataclasses import dataclass

from config_manager import ConfigManager
from server_model import ServerModel
from command_handler import CommandHandler


T = TypeVar('T')


@dataclass
class ServiceDescriptor:
    """Describes how to create and manage a service"""
    factory: Callable
    instance: Optional[Any] = None


class DependencyContainer:
    """
    Simple dependency injection container.

    Services are singletons: created on first resolve and reused.
    """

    def __init__(self):
        self._services: Dict[Type, ServiceDescriptor] = {}

    def register_singleton(self, service_type: Type[T], factory: Callable[[], T]):
        """Register a service created once and reused"""
        self._services[service_type] = ServiceDescriptor(factory=factory)

    def register_instance(self, service_type: Type[T], instance: T):
        """Register an existing instance as a singleton"""
        self._services[service_type] = ServiceDescriptor(
            factory=lambda: instance,
            instance=instance
        )

    def resolve(self, service_type: Type[T]) -> T:
        """
        Resolve a service from the container

        Raises:
            KeyError: If service type is not registered
        """
        if service_type not in self._services:
            raise KeyError(f"Service {service_type.__name__} not registered")

        descriptor = self._services[service_type]

        if descriptor.instance is None:
            descriptor.instance = descriptor.factory()
        return descriptor.instance


def create_default_container(config: Optional[ConfigManager] = None) -> DependencyContainer:
    """
    Build the server-side object graph

    Args:
        config: Optional configuration manager (defaults are used otherwise)

    Returns:
        Container holding the ConfigManager, the single ServerModel and
        a CommandHandler bound to it
    """
    container = DependencyContainer()
    if config is None:
        config = ConfigManager()
    container.register_instance(ConfigManager, config)

    container.register_singleton(
        ServerModel,
        lambda: ServerModel.from_config(container.resolve(ConfigManager))
    )
    container.register_singleton(
        CommandHandler,
        lambda: CommandHandler(container.resolve(ServerModel))
    )
    return container
