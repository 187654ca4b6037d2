"""
Method and route descriptors attached to Api definitions.

Route descriptors are frozen value records. ``inherit`` produces an
independent copy re-parented to a derived Api and records the previous Api
as ``base``.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import MutableMapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Callable, Self, final

from tyx.errors import DuplicateRouteError

if TYPE_CHECKING:
    from tyx.api import ApiMetadata
    from tyx.service import ServiceMetadata

logger = logging.getLogger(__name__)


@final
@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class HttpRouteMetadata:
    """An HTTP binding ``"<VERB> <resource>"`` of one Api method."""

    api: "ApiMetadata"
    method: str
    verb: str
    resource: str
    code: int = 200
    content_type: str = "application/json"
    base: "ApiMetadata | None" = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "verb", self.verb.upper())

    @property
    def route(self) -> str:
        return f"{self.verb} {self.resource}"

    def inherit(self, api: "ApiMetadata") -> "HttpRouteMetadata":
        return replace(self, api=api, base=self.api)


@final
@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class EventRouteMetadata:
    """An event binding ``"<source> <resource>"`` of one Api method."""

    api: "ApiMetadata"
    method: str
    source: str
    resource: str
    action_filter: str | None = None
    object_filter: str | None = None
    base: "ApiMetadata | None" = None

    @property
    def route(self) -> str:
        return f"{self.source} {self.resource}"

    def inherit(self, api: "ApiMetadata") -> "EventRouteMetadata":
        return replace(self, api=api, base=self.api)


@final
@dataclass(kw_only=True, slots=True, weakref_slot=True, eq=False)
class MethodMetadata:
    """
    One remote-callable method of an Api.

    ``host`` is the class that declared the method and ``target`` the
    declared function. ``base`` is set on copies inherited from a parent Api.
    """

    api: "ApiMetadata"
    name: str
    host: type
    target: Callable[..., Any] | None = None
    base: "ApiMetadata | None" = None
    http: MutableMapping[str, HttpRouteMetadata] = field(default_factory=dict)
    events: MutableMapping[str, list[EventRouteMetadata]] = field(default_factory=dict)
    publisher: "ServiceMetadata | None" = None
    signature: inspect.Signature | None = None

    def add_route(self, route: HttpRouteMetadata) -> Self:
        if route.route in self.http:
            raise DuplicateRouteError(
                f"Duplicate route [{route.route}] on [{self.api.name}.{self.name}]"
            )
        self.http[route.route] = route
        return self

    def add_event(self, event: EventRouteMetadata) -> Self:
        self.events.setdefault(event.route, []).append(event)
        return self

    def inherit(self, api: "ApiMetadata") -> "MethodMetadata":
        return MethodMetadata(
            api=api,
            name=self.name,
            host=self.host,
            target=self.target,
            base=self.api,
            http={key: route.inherit(api) for key, route in self.http.items()},
            events={
                key: [event.inherit(api) for event in events]
                for key, events in self.events.items()
            },
        )

    def override(self, derived: "MethodMetadata | None") -> "MethodMetadata":
        """
        Layer a derived declaration over this inherited one.

        Fields declared by ``derived`` win; route maps fall back to the
        inherited bindings only when the derived method declares none.
        """
        if derived is None:
            return self
        return MethodMetadata(
            api=derived.api,
            name=self.name,
            host=derived.host,
            target=derived.target if derived.target is not None else self.target,
            base=self.base,
            http=dict(derived.http) if derived.http else dict(self.http),
            events=(
                {key: list(events) for key, events in derived.events.items()}
                if derived.events
                else {key: list(events) for key, events in self.events.items()}
            ),
        )

    def commit(self, api: "ApiMetadata") -> Self:
        """Bind to ``api`` and register route bindings it does not hold yet."""
        self.api = api
        if self.target is not None and self.signature is None:
            self.signature = inspect.signature(self.target)
        for key, route in self.http.items():
            existing = api.routes.get(key)
            if existing is None:
                api.routes[key] = route
            elif existing.method != self.name:
                raise DuplicateRouteError(
                    f"Duplicate route [{key}] on [{api.name}.{self.name}],"
                    f" already bound to [{api.name}.{existing.method}]"
                )
        for key, events in self.events.items():
            bound = api.events.setdefault(key, [])
            for event in events:
                if not any(item is event for item in bound):
                    bound.append(event)
        return self

    def publish(self, service: "ServiceMetadata") -> Self:
        self.publisher = service
        return self
