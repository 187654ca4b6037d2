"""
Api definitions: named remote-callable contracts.

An :class:`ApiMetadata` accumulates methods and route bindings while its
class is being decorated, then :meth:`ApiMetadata.commit` resolves the
single-parent inheritance chain, validates it against the owning Service
and publishes the Api under its name.
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final, Self

from tyx.errors import ConsistencyError, DuplicateRouteError, StructuralMismatchError
from tyx.method import EventRouteMetadata, HttpRouteMetadata, MethodMetadata

if TYPE_CHECKING:
    from tyx.registry import Registry
    from tyx.service import ServiceMetadata

logger = logging.getLogger(__name__)


@dataclass(kw_only=True, slots=True, weakref_slot=True, eq=False)
class ApiMetadata:
    registry: Final["Registry"]
    target: Final[type]
    name: str = field(init=False)
    alias: str | None = None

    base: "ApiMetadata | None" = None
    owner: "ServiceMetadata | None" = None
    """The Service declared on the Api's own class, if any."""

    publisher: "ServiceMetadata | None" = None
    """The Service whose commit most recently published this Api."""

    services: MutableMapping[str, "ServiceMetadata"] = field(default_factory=dict)
    methods: MutableMapping[str, MethodMetadata] = field(default_factory=dict)
    routes: MutableMapping[str, HttpRouteMetadata] = field(default_factory=dict)
    events: MutableMapping[str, list[EventRouteMetadata]] = field(default_factory=dict)
    committed: bool = False

    def __post_init__(self) -> None:
        self.name = self.target.__name__

    def add_method(self, meta: MethodMetadata) -> Self:
        self.methods[meta.name] = meta
        return self

    def add_route(self, meta: HttpRouteMetadata) -> Self:
        if meta.route in self.routes:
            raise DuplicateRouteError(f"Duplicate route: {meta.route}")
        self.routes[meta.route] = meta
        return self

    def add_event(self, meta: EventRouteMetadata) -> Self:
        self.events.setdefault(meta.route, []).append(meta)
        return self

    def add_service(self, service: "ServiceMetadata") -> Self:
        if service.api is not self:
            raise ConsistencyError(
                f"Service [{service.name}] is not an implementation of [{self.name}]"
            )
        self.services[service.name] = service
        return self

    def commit(self, alias: str | None = None) -> Self:
        if self.committed:
            logger.debug("Api [%s] already committed", self.name)
            return self

        self.owner = self.registry.get_service(self.target)
        self.alias = (self.owner.alias if self.owner is not None else None) or alias or self.name

        sup = self.registry.parent_api(self.target)
        if sup is not None and not sup.committed:
            sup.commit()
        base: ApiMetadata | None = None
        owner_base = self.owner.base if self.owner is not None else None
        if owner_base is not None and not owner_base.inline:
            base = owner_base.api
        if base is not None and base is not sup:
            raise StructuralMismatchError(
                f"Api [{self.name}] inherits [{sup.name if sup else None}]"
                f" but its owner's base implements [{base.name}]"
            )
        if sup is not None and sup.owner is None and self.owner is not None:
            raise StructuralMismatchError(
                f"Api [{self.name}] owned by [{self.owner.name}] extends ownerless Api [{sup.name}]"
            )

        self._inherit(base or sup)

        self.registry.register_api(self)
        for method in list(self.methods.values()):
            method.commit(self)
        self.committed = True
        logger.debug("Committed Api [%s] as [%s]", self.name, self.alias)
        return self

    def _inherit(self, base: "ApiMetadata | None") -> None:
        if base is None:
            return
        self.base = base
        for inherited in base.methods.values():
            sup = inherited.inherit(self)
            self.methods[sup.name] = sup.override(self.methods.get(sup.name))

    def publish(self, service: "ServiceMetadata") -> Self:
        self.publisher = service
        for method in self.methods.values():
            method.publish(service)
        logger.debug("Api [%s] published by [%s]", self.name, service.name)
        return self
