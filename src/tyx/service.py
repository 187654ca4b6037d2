"""
Service definitions: concrete classes implementing zero or one Api.

A :class:`ServiceMetadata` records handlers, injected dependencies and the
four singleton lifecycle hooks during decoration. :meth:`ServiceMetadata.commit`
resolves the parent Service and the implemented Api, copies inherited
members down, checks the Api contract and publishes the Service.
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Callable, Final, Self, final

from tyx.errors import (
    DuplicateMemberError,
    MissingHandlerError,
    MissingOverrideError,
    StaleHandlerError,
    StructuralMismatchError,
    UnresolvedResourceError,
)

if TYPE_CHECKING:
    from tyx.api import ApiMetadata
    from tyx.registry import Registry

logger = logging.getLogger(__name__)

CONSTRUCTOR = "[constructor]"


def injection_key(property_key: str | None, index: int | None) -> str:
    """
    Key of an injection site.

    ``"name"`` for a property, ``"name#index"`` for a method parameter,
    ``"[constructor]#index"`` for a constructor parameter and a bare
    ``"[constructor]"`` when neither is given.
    """
    key = property_key or CONSTRUCTOR
    return key if index is None else f"{key}#{index}"


@final
@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class InjectMetadata:
    service: "ServiceMetadata"
    resource: str
    target: type | None = None
    index: int | None = None
    base: "ServiceMetadata | None" = None
    """The Service this dependency was inherited from."""

    def inherit(self, service: "ServiceMetadata") -> "InjectMetadata":
        return replace(self, base=self.service, service=service)


@final
@dataclass(frozen=True, kw_only=True, slots=True, weakref_slot=True)
class HandlerMetadata:
    service: "ServiceMetadata"
    method: str
    target: Callable[..., Any] | None
    override: bool = False
    base: "ServiceMetadata | None" = None
    """The Service this handler was inherited from."""

    def inherit(self, service: "ServiceMetadata") -> "HandlerMetadata":
        return replace(self, base=self.service, service=service)


@dataclass(kw_only=True, slots=True, weakref_slot=True, eq=False)
class ServiceMetadata:
    registry: Final["Registry"]
    target: Final[type]
    name: str = field(init=False)
    alias: str | None = None
    final: bool = False
    inline: bool = False
    api: "ApiMetadata | None" = None
    base: "ServiceMetadata | None" = None

    dependencies: MutableMapping[str, InjectMetadata] = field(default_factory=dict)
    handlers: MutableMapping[str, HandlerMetadata] = field(default_factory=dict)

    initializer: HandlerMetadata | None = None
    selector: HandlerMetadata | None = None
    activator: HandlerMetadata | None = None
    releasor: HandlerMetadata | None = None

    committed: bool = False

    def __post_init__(self) -> None:
        self.name = self.target.__name__

    def inject(
        self,
        property_key: str | None,
        index: int | None = None,
        resource: str | type | None = None,
        *,
        design_type: object = None,
    ) -> InjectMetadata:
        """
        Record an injection site.

        :param property_key: Attribute or method name, ``None`` for the constructor.
        :param index: Parameter position for constructor or method parameters.
        :param resource: Explicit token, either a string or a class.
        :param design_type: Declared type of the site, used when ``resource`` is omitted.
        :return: The recorded descriptor.
        """
        key = injection_key(property_key, index)
        token = resource if resource is not None else design_type
        target: type | None = None
        if isinstance(token, type):
            target = token
            token = token.__name__
        if not token:
            raise UnresolvedResourceError(
                f"Service [{self.name}] cannot infer resource for [{key}]"
            )
        meta = InjectMetadata(service=self, resource=str(token), target=target, index=index)
        self.dependencies[key] = meta
        return meta

    def add_handler(self, property_key: str, target: Callable[..., Any] | None) -> Self:
        if property_key in self.handlers:
            raise DuplicateMemberError(f"Duplicate handler [{self.name}.{property_key}]")
        self.handlers[property_key] = HandlerMetadata(
            service=self, method=property_key, target=target, override=False
        )
        return self

    def add_override(self, property_key: str, target: Callable[..., Any] | None) -> Self:
        if property_key in self.handlers:
            raise DuplicateMemberError(f"Duplicate override [{self.name}.{property_key}]")
        self.handlers[property_key] = HandlerMetadata(
            service=self, method=property_key, target=target, override=True
        )
        return self

    def _hook(self, kind: str, property_key: str, target: Callable[..., Any] | None) -> HandlerMetadata:
        if getattr(self, kind) is not None:
            raise DuplicateMemberError(f"Duplicate {kind} [{self.name}.{property_key}]")
        return HandlerMetadata(service=self, method=property_key, target=target)

    def set_initializer(self, property_key: str, target: Callable[..., Any] | None) -> Self:
        self.initializer = self._hook("initializer", property_key, target)
        return self

    def set_selector(self, property_key: str, target: Callable[..., Any] | None) -> Self:
        self.selector = self._hook("selector", property_key, target)
        return self

    def set_activator(self, property_key: str, target: Callable[..., Any] | None) -> Self:
        self.activator = self._hook("activator", property_key, target)
        return self

    def set_releasor(self, property_key: str, target: Callable[..., Any] | None) -> Self:
        self.releasor = self._hook("releasor", property_key, target)
        return self

    def commit(
        self,
        alias: str | None = None,
        api_class: type | None = None,
        final: bool = False,
    ) -> Self:
        if self.committed:
            logger.debug("Service [%s] already committed", self.name)
            return self

        self.final = bool(final)

        base = self.registry.parent_service(self.target)
        if base is not None and base.final:
            raise StructuralMismatchError(
                f"Service [{self.name}] extends final service [{base.name}]"
            )
        if base is None and self.registry.parent_api(self.target) is not None:
            raise StructuralMismatchError(f"Service [{self.name}] extends Api class")
        if base is not None and not base.committed:
            base.commit()
        self.base = base

        api: ApiMetadata | None = None
        if api_class is not None:
            api = self.registry.get_api(api_class)
            if api is None:
                raise StructuralMismatchError(f"[{api_class!r}] is not an Api class")
            api.commit()
        inherited = base.api if base is not None and not base.inline else None
        if api is not None and inherited is not None and api is not inherited:
            raise StructuralMismatchError(
                f"Service [{self.name}] overrides Api [{inherited.name}] of base"
                f" [{base.name if base else None}] with [{api.name}]"
            )
        api = api or inherited

        self.alias = (
            (api.alias if api is not None else None)
            or alias
            or (base.alias if base is not None else None)
            or (self.name if self.final else None)
        )

        sap = self.registry.get_api(self.target)
        if api is not None and sap is not None:
            raise StructuralMismatchError(
                f"Service [{self.name}] implements [{api.name}] and defines own Api"
            )
        self.inline = sap is not None
        self.api = api or sap
        if sap is not None:
            sap.commit()

        self._inherit(base)

        if self.api is not None:
            self._check_contract(self.api)

        # Shared tables change only after every check has passed.
        self.registry.register_service(self)
        if api is not None:
            api.add_service(self)
        if self.api is not None:
            self.api.publish(self)

        self.committed = True
        logger.debug(
            "Committed Service [%s] as [%s] implementing [%s]",
            self.name,
            self.alias,
            self.api.name if self.api is not None else None,
        )
        return self

    def _inherit(self, base: "ServiceMetadata | None") -> None:
        if base is None:
            return
        self.initializer = self.initializer or (base.initializer and base.initializer.inherit(self))
        self.selector = self.selector or (base.selector and base.selector.inherit(self))
        self.activator = self.activator or (base.activator and base.activator.inherit(self))
        self.releasor = self.releasor or (base.releasor and base.releasor.inherit(self))
        # An own __init__ replaces the constructor signature the base sites refer to.
        own_constructor = "__init__" in vars(self.target)
        for key, dependency in base.dependencies.items():
            if own_constructor and key.startswith(f"{CONSTRUCTOR}#"):
                continue
            if key not in self.dependencies:
                self.dependencies[key] = dependency.inherit(self)
        for key, handler in base.handlers.items():
            if key not in self.handlers:
                self.handlers[key] = handler.inherit(self)

    def _check_contract(self, api: "ApiMetadata") -> None:
        own = vars(self.target)
        for method in api.methods:
            handler = self.handlers.get(method)
            if handler is None and api.owner is not self:
                raise MissingHandlerError(
                    f"Service [{self.name}] missing handler for [{api.name}.{method}]"
                )
            overrides_base = self.base is not None and method in self.base.handlers
            if method in own and overrides_base and (
                handler is None or handler.base is not None or not handler.override
            ):
                raise MissingOverrideError(
                    f"Service [{self.name}] missing override handler for"
                    f" [{self.name}.{method}] overriding [{self.base.name}.{method}]"
                )
        for method in self.handlers:
            if method not in api.methods:
                raise StaleHandlerError(f"Service [{self.name}] lose handler on [{method}]")
