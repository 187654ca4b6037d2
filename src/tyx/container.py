"""
A dependency-injection container driven by committed Service definitions.

Each Service is built at most once per container: constructor dependencies
are passed by parameter name, property dependencies are assigned, then the
``initializer`` and ``activator`` hooks run. :meth:`Container.release`
calls ``releasor`` hooks in reverse activation order.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from typing import Final, Self

from tyx.config import Activation, ContainerConfig
from tyx.errors import ResolutionError
from tyx.registry import Registry, default_registry
from tyx.service import CONSTRUCTOR, HandlerMetadata, ServiceMetadata

logger = logging.getLogger(__name__)


def _token(resource: str | type) -> str:
    return resource.__name__ if isinstance(resource, type) else resource


@dataclass(kw_only=True, slots=True, weakref_slot=True, eq=False)
class Container:
    registry: Final[Registry] = field(default_factory=default_registry)
    config: Final[ContainerConfig] = field(default_factory=ContainerConfig)

    _bindings: MutableMapping[str, object] = field(
        default_factory=dict, init=False, repr=False
    )
    _instances: MutableMapping[str, object] = field(
        default_factory=dict, init=False, repr=False
    )
    _activated: list[tuple[ServiceMetadata, object]] = field(
        default_factory=list, init=False, repr=False
    )
    _resolving: list[str] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        self._bindings.update(self.config.resources)

    def bind(self, resource: str | type, value: object) -> Self:
        self._bindings[_token(resource)] = value
        return self

    def resolve(self, resource: str | type) -> object:
        token = _token(resource)
        if token in self._bindings:
            return self._bindings[token]
        service = self.select(token)
        if service.name in self._instances:
            return self._instances[service.name]
        if service.name in self._resolving:
            chain = " -> ".join((*self._resolving, service.name))
            raise ResolutionError(f"Circular dependency: {chain}")
        self._resolving.append(service.name)
        try:
            instance = self._create(service)
        finally:
            self._resolving.pop()
        self._instances[service.name] = instance
        return instance

    def select(self, token: str) -> ServiceMetadata:
        """
        Pick the Service that satisfies ``token``.

        Among several candidates, the first whose selector accepts the token
        wins; otherwise the Api's publisher is used.
        """
        candidates = self.registry.implementations(token)
        match candidates:
            case []:
                raise ResolutionError(f"No service for resource [{token}]")
            case [single]:
                return single
        for candidate in candidates:
            if candidate.selector is not None and self._call_selector(
                candidate, candidate.selector, token
            ):
                logger.debug("Selector of [%s] accepted [%s]", candidate.name, token)
                return candidate
        publisher = candidates[0].api.publisher if candidates[0].api is not None else None
        if publisher is not None and publisher in candidates:
            return publisher
        names = ", ".join(candidate.name for candidate in candidates)
        raise ResolutionError(f"Ambiguous resource [{token}]: {names}")

    @staticmethod
    def _call_selector(service: ServiceMetadata, selector: HandlerMetadata, token: str) -> bool:
        return bool(getattr(service.target, selector.method)(token))

    def _constructor_arguments(self, service: ServiceMetadata) -> dict[str, object]:
        """
        Resolve constructor dependencies keyed by parameter name.

        ``[constructor]#i`` refers to the ``i``-th parameter after ``self``,
        so parameters that are not injected keep their defaults.
        """
        dependencies = [
            dependency
            for key, dependency in service.dependencies.items()
            if key.startswith(f"{CONSTRUCTOR}#")
        ]
        if not dependencies:
            return {}
        parameters = list(inspect.signature(service.target).parameters.values())
        arguments: dict[str, object] = {}
        for dependency in dependencies:
            index = dependency.index
            if index is None or index >= len(parameters):
                raise ResolutionError(
                    f"Service [{service.name}] has no constructor parameter #{index}"
                )
            parameter = parameters[index]
            if parameter.kind not in (
                inspect.Parameter.POSITIONAL_OR_KEYWORD,
                inspect.Parameter.KEYWORD_ONLY,
            ):
                raise ResolutionError(
                    f"Service [{service.name}] cannot inject constructor parameter"
                    f" [{parameter.name}] of kind {parameter.kind.description}"
                )
            arguments[parameter.name] = self.resolve(dependency.resource)
        return arguments

    def _create(self, service: ServiceMetadata) -> object:
        instance = service.target(**self._constructor_arguments(service))
        for key, dependency in service.dependencies.items():
            if dependency.index is None and key != CONSTRUCTOR:
                setattr(instance, key, self.resolve(dependency.resource))
        logger.debug("Constructed [%s]", service.name)

        self._run_hook(instance, service.initializer)
        self._run_hook(instance, service.activator)
        self._activated.append((service, instance))
        return instance

    @staticmethod
    def _run_hook(instance: object, hook: HandlerMetadata | None) -> None:
        if hook is not None:
            getattr(instance, hook.method)()

    def start(self) -> Self:
        if self.config.activation is Activation.EAGER:
            tokens = self.config.preload or tuple(
                service.name
                for service in self.registry.service_by_name.values()
                if service.final
            )
            for token in tokens:
                self.resolve(token)
        logger.info("Container started with %d instance(s)", len(self._instances))
        return self

    def release(self) -> None:
        while self._activated:
            service, instance = self._activated.pop()
            self._run_hook(instance, service.releasor)
            logger.debug("Released [%s]", service.name)
        self._instances.clear()
        logger.info("Container released")

    def __enter__(self) -> Self:
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.release()
