"""Minimal DI container: register by type/protocol, resolve dependencies."""
from __future__ import annotations

import inspect
import typing
from typing import Any, Callable, TypeVar

T = TypeVar("T")


def _instantiate_with_container(container: Container, cls: type[T]) -> T:
    """Create an instance of cls, resolving __init__ dependencies from the container.

    Parameters with a default are left to the default when nothing is registered for them.
    """
    hints = typing.get_type_hints(cls.__init__)
    sig = inspect.signature(cls)
    kwargs: dict[str, Any] = {}
    for name, param in sig.parameters.items():
        ann = hints.get(name)
        if ann is None:
            continue
        if not container.has(ann) and param.default is not inspect.Parameter.empty:
            continue
        kwargs[name] = container.resolve(ann)
    return cls(**kwargs)


class Container:
    """
    Register by type (or key) and resolve via factory.
    Allows registering an implementation for a protocol/abstraction.
    """

    def __init__(self) -> None:
        self._registry: dict[type[Any] | str, Callable[[], Any]] = {}
        self._singletons: dict[type[Any] | str, Any] = {}
        self._singleton_keys: set[type[Any] | str] = set()

    def register(self, key: type[T] | type[Any] | str, factory: Callable[[], T], singleton: bool = True) -> None:
        """Register a factory for a type or string key."""
        self._registry[key] = factory
        self._singletons.pop(key, None)
        if singleton:
            self._singleton_keys.add(key)
        else:
            self._singleton_keys.discard(key)

    def register_instance(self, key: type[T] | type[Any] | str, instance: T) -> None:
        """Register a ready-made instance."""
        self._registry[key] = lambda: instance
        self._singletons[key] = instance
        self._singleton_keys.add(key)

    def register_class(self, cls: type[T], singleton: bool = True) -> None:
        """Register a class: on resolve an instance is created with dependencies from the container."""
        self.register(key=cls, factory=lambda: _instantiate_with_container(self, cls), singleton=singleton)

    def has(self, key: type[Any] | str) -> bool:
        return key in self._registry

    def resolve(self, key: type[T] | type[Any] | str) -> T:
        """Resolve an instance by type or key."""
        if key not in self._registry:
            raise KeyError(f"No registration for {key}")
        if key in self._singletons:
            return self._singletons[key]
        instance = self._registry[key]()
        if key in self._singleton_keys:
            self._singletons[key] = instance
        return instance
