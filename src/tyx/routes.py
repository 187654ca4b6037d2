"""
Read-only views of the committed graph for routers and tooling.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TypeAlias, final

from tyx.api import ApiMetadata
from tyx.registry import Registry, default_registry
from tyx.service import HandlerMetadata, ServiceMetadata

JsonScalar: TypeAlias = str | int | float | bool | None
JsonValue: TypeAlias = JsonScalar | list["JsonValue"] | dict[str, "JsonValue"]


class RouteKind(str, Enum):
    HTTP = "http"
    EVENT = "event"


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class RouteEntry:
    kind: RouteKind
    route: str
    api: str
    method: str
    service: str | None
    """Name of the Api's publisher, the Service a router dispatches to."""


def route_table(registry: Registry | None = None) -> list[RouteEntry]:
    """
    Flatten every committed Api into route entries.

    HTTP routes come first, then event routes, each in declaration order.
    """
    entries: list[RouteEntry] = []
    for api in (registry or default_registry()).api_by_name.values():
        publisher = api.publisher.name if api.publisher is not None else None
        for route in api.routes.values():
            entries.append(
                RouteEntry(
                    kind=RouteKind.HTTP,
                    route=route.route,
                    api=api.name,
                    method=route.method,
                    service=publisher,
                )
            )
        for events in api.events.values():
            for event in events:
                entries.append(
                    RouteEntry(
                        kind=RouteKind.EVENT,
                        route=event.route,
                        api=api.name,
                        method=event.method,
                        service=publisher,
                    )
                )
    return entries


def _name(meta: ApiMetadata | ServiceMetadata | None) -> str | None:
    return meta.name if meta is not None else None


def _describe_handler(meta: HandlerMetadata | None) -> JsonValue:
    if meta is None:
        return None
    return {
        "method": meta.method,
        "override": meta.override,
        "inherited_from": _name(meta.base),
    }


def _describe_api(api: ApiMetadata) -> dict[str, JsonValue]:
    return {
        "alias": api.alias,
        "base": _name(api.base),
        "owner": _name(api.owner),
        "publisher": _name(api.publisher),
        "services": sorted(api.services),
        "methods": {
            name: {
                "inherited_from": _name(method.base),
                "http": [
                    {"route": route.route, "code": route.code}
                    for route in method.http.values()
                ],
                "events": [
                    event.route for events in method.events.values() for event in events
                ],
            }
            for name, method in api.methods.items()
        },
    }


def _describe_service(service: ServiceMetadata) -> dict[str, JsonValue]:
    return {
        "alias": service.alias,
        "final": service.final,
        "inline": service.inline,
        "api": _name(service.api),
        "base": _name(service.base),
        "dependencies": {
            key: {
                "resource": dependency.resource,
                "index": dependency.index,
                "inherited_from": _name(dependency.base),
            }
            for key, dependency in service.dependencies.items()
        },
        "handlers": {
            key: _describe_handler(meta) for key, meta in service.handlers.items()
        },
        "initializer": _describe_handler(service.initializer),
        "selector": _describe_handler(service.selector),
        "activator": _describe_handler(service.activator),
        "releasor": _describe_handler(service.releasor),
    }


def describe(registry: Registry | None = None) -> dict[str, JsonValue]:
    """Describe every committed Api and Service as a JSON-compatible mapping."""
    reg = registry or default_registry()
    return {
        "apis": {name: _describe_api(api) for name, api in reg.api_by_name.items()},
        "services": {
            name: _describe_service(service)
            for name, service in reg.service_by_name.items()
        },
    }
