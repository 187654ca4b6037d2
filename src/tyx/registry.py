"""
Process-wide storage of Api and Service definitions.

Definitions are attached to classes through an explicit side-table keyed by
class identity rather than through attributes on the classes themselves.
Lookups are *own* lookups: a subclass never sees its parent's definition.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field
from types import MappingProxyType

from tyx.api import ApiMetadata
from tyx.errors import DuplicateDefinitionError, NotAClassError
from tyx.service import ServiceMetadata
from tyx.utils import base_class, class_of

logger = logging.getLogger(__name__)


@dataclass(kw_only=True, slots=True, weakref_slot=True, eq=False)
class Registry:
    """
    Keyed storage mapping classes and public names to their definitions.

    ``define_*`` is idempotent per class. The name tables are written only
    by commits, and a distinct definition under an already-used name is a
    :class:`~tyx.errors.DuplicateDefinitionError`.
    """

    _apis: MutableMapping[type, ApiMetadata] = field(
        default_factory=dict, init=False, repr=False
    )
    _services: MutableMapping[type, ServiceMetadata] = field(
        default_factory=dict, init=False, repr=False
    )
    _api_by_name: MutableMapping[str, ApiMetadata] = field(
        default_factory=dict, init=False, repr=False
    )
    _service_by_name: MutableMapping[str, ServiceMetadata] = field(
        default_factory=dict, init=False, repr=False
    )

    @property
    def api_by_name(self) -> Mapping[str, ApiMetadata]:
        return MappingProxyType(self._api_by_name)

    @property
    def service_by_name(self) -> Mapping[str, ServiceMetadata]:
        return MappingProxyType(self._service_by_name)

    def define_api(self, target: type) -> ApiMetadata:
        if not isinstance(target, type):
            raise NotAClassError(f"Not a class: {target!r}")
        meta = self._apis.get(target)
        if meta is None:
            meta = ApiMetadata(registry=self, target=target)
            self._apis[target] = meta
            logger.debug("Defined Api [%s]", meta.name)
        return meta

    def define_service(self, target: type) -> ServiceMetadata:
        if not isinstance(target, type):
            raise NotAClassError(f"Not a class: {target!r}")
        meta = self._services.get(target)
        if meta is None:
            meta = ServiceMetadata(registry=self, target=target)
            self._services[target] = meta
            logger.debug("Defined Service [%s]", meta.name)
        return meta

    def get_api(self, target: object) -> ApiMetadata | None:
        cls = class_of(target)
        return None if cls is None else self._apis.get(cls)

    def get_service(self, target: object) -> ServiceMetadata | None:
        cls = class_of(target)
        return None if cls is None else self._services.get(cls)

    def has_api(self, target: object) -> bool:
        return self.get_api(target) is not None

    def has_service(self, target: object) -> bool:
        return self.get_service(target) is not None

    def parent_api(self, target: type) -> ApiMetadata | None:
        """The Api attached to the structural parent of ``target``, if any."""
        return self.get_api(base_class(target))

    def parent_service(self, target: type) -> ServiceMetadata | None:
        return self.get_service(base_class(target))

    def register_api(self, meta: ApiMetadata) -> None:
        prev = self._api_by_name.get(meta.name)
        if prev is not None and prev is not meta:
            raise DuplicateDefinitionError(f"Duplicate API name [{meta.name}]")
        self._api_by_name[meta.name] = meta

    def register_service(self, meta: ServiceMetadata) -> None:
        prev = self._service_by_name.get(meta.name)
        if prev is not None and prev is not meta:
            raise DuplicateDefinitionError(f"Duplicate service name [{meta.name}]")
        self._service_by_name[meta.name] = meta

    def find_api(self, token: str) -> ApiMetadata | None:
        """Find a committed Api by name, falling back to its alias."""
        api = self._api_by_name.get(token)
        if api is not None:
            return api
        for candidate in self._api_by_name.values():
            if candidate.alias == token:
                return candidate
        return None

    def implementations(self, token: str) -> list[ServiceMetadata]:
        """
        Candidate Services able to satisfy ``token``.

        :param token: A Service name, an Api name or alias, or a Service alias.
        :return: The matching committed Services, possibly empty.
        """
        service = self._service_by_name.get(token)
        if service is not None:
            return [service]
        api = self.find_api(token)
        if api is not None:
            if api.services:
                return list(api.services.values())
            return [api.owner] if api.owner is not None else []
        return [
            candidate
            for candidate in self._service_by_name.values()
            if candidate.alias == token
        ]


_default_registry = Registry()


def default_registry() -> Registry:
    """The process-wide registry used when no explicit registry is given."""
    return _default_registry
