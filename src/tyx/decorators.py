"""
Class-decoration syntax for Apis and Services.

Method decorators only attach marks to functions; the class decorators
:func:`api` and :func:`service` read those marks from the class namespace,
feed them to the definition builders and commit the definition.

Example::

    @api
    class Greeter:
        @get("/hello")
        def hello(self) -> str: ...

    @service(api=Greeter, final=True)
    class GreeterImpl:
        config: Configuration = inject()

        @handler
        def hello(self) -> str:
            return f"Hello from {self.config['name']}"

        @activate
        def connect(self) -> None: ...
"""

from __future__ import annotations

import inspect
from collections.abc import Iterator
from dataclasses import dataclass
from typing import (
    Annotated,
    Any,
    Callable,
    TypeVar,
    final,
    get_args,
    get_origin,
    get_type_hints,
)

from tyx.api import ApiMetadata
from tyx.method import EventRouteMetadata, HttpRouteMetadata, MethodMetadata
from tyx.registry import Registry, default_registry
from tyx.service import ServiceMetadata

TFunction = TypeVar("TFunction", bound=Callable[..., Any])

_MARKS = "__tyx_marks__"


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class _MethodMark:
    pass


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class _HttpMark:
    verb: str
    resource: str
    code: int
    content_type: str


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class _EventMark:
    source: str
    resource: str
    action_filter: str | None
    object_filter: str | None


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class _HandlerMark:
    override: bool


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class _HookMark:
    kind: str
    """One of ``initializer``, ``selector``, ``activator`` or ``releasor``."""


_ApiMark = _MethodMark | _HttpMark | _EventMark


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class Inject:
    """
    Injection marker.

    Used as a class attribute default (``db: Database = inject()``) or as
    ``Annotated`` metadata of an ``__init__`` parameter.
    """

    resource: str | type | None = None


def inject(resource: str | type | None = None) -> Any:
    """Mark an injection site; the token defaults to the declared type."""
    return Inject(resource=resource)


def _unwrap(value: object) -> object:
    if isinstance(value, (classmethod, staticmethod)):
        return value.__func__
    return value


def _add_mark(function: TFunction, mark: object) -> TFunction:
    underlying = _unwrap(function)
    marks = underlying.__dict__.setdefault(_MARKS, [])
    marks.append(mark)
    return function


def _marked_members(target: type) -> Iterator[tuple[str, Callable[..., Any], list[object]]]:
    for name, value in vars(target).items():
        underlying = _unwrap(value)
        marks = getattr(underlying, _MARKS, None)
        if marks:
            yield name, underlying, marks  # type: ignore[misc]


def _has_api_marks(target: type) -> bool:
    return any(
        isinstance(mark, _ApiMark)
        for _, _, marks in _marked_members(target)
        for mark in marks
    )


def method(function: TFunction) -> TFunction:
    """Declare an Api method without a route binding."""
    return _add_mark(function, _MethodMark())


def http(
    verb: str,
    resource: str,
    *,
    code: int = 200,
    content_type: str = "application/json",
) -> Callable[[TFunction], TFunction]:
    def wrapper(function: TFunction) -> TFunction:
        return _add_mark(
            function,
            _HttpMark(verb=verb, resource=resource, code=code, content_type=content_type),
        )

    return wrapper


def get(resource: str, **kwargs: Any) -> Callable[[TFunction], TFunction]:
    return http("GET", resource, **kwargs)


def post(resource: str, **kwargs: Any) -> Callable[[TFunction], TFunction]:
    return http("POST", resource, **kwargs)


def put(resource: str, **kwargs: Any) -> Callable[[TFunction], TFunction]:
    return http("PUT", resource, **kwargs)


def delete(resource: str, **kwargs: Any) -> Callable[[TFunction], TFunction]:
    return http("DELETE", resource, **kwargs)


def event(
    source: str,
    resource: str,
    *,
    action_filter: str | None = None,
    object_filter: str | None = None,
) -> Callable[[TFunction], TFunction]:
    """Bind an Api method to an event route ``"<source> <resource>"``."""

    def wrapper(function: TFunction) -> TFunction:
        return _add_mark(
            function,
            _EventMark(
                source=source,
                resource=resource,
                action_filter=action_filter,
                object_filter=object_filter,
            ),
        )

    return wrapper


def handler(function: TFunction) -> TFunction:
    return _add_mark(function, _HandlerMark(override=False))


def override(function: TFunction) -> TFunction:
    """Mark a handler that replaces a contract method implemented by the base Service."""
    return _add_mark(function, _HandlerMark(override=True))


def initialize(function: TFunction) -> TFunction:
    return _add_mark(function, _HookMark(kind="initializer"))


def select(function: TFunction) -> TFunction:
    """
    Mark the selector hook.

    Selectors run before an instance exists, so the container calls them on
    the class with the requested token; declare them as ``classmethod``.
    """
    return _add_mark(function, _HookMark(kind="selector"))


def activate(function: TFunction) -> TFunction:
    return _add_mark(function, _HookMark(kind="activator"))


def release(function: TFunction) -> TFunction:
    return _add_mark(function, _HookMark(kind="releasor"))


def _collect_methods(meta: ApiMetadata, target: type) -> None:
    for name, function, marks in _marked_members(target):
        api_marks = [mark for mark in marks if isinstance(mark, _ApiMark)]
        if not api_marks:
            continue
        method_meta = MethodMetadata(api=meta, name=name, host=target, target=function)
        meta.add_method(method_meta)
        # Marks are appended bottom-up; reverse to keep declaration order.
        for mark in reversed(api_marks):
            match mark:
                case _HttpMark():
                    route = HttpRouteMetadata(
                        api=meta,
                        method=name,
                        verb=mark.verb,
                        resource=mark.resource,
                        code=mark.code,
                        content_type=mark.content_type,
                    )
                    method_meta.add_route(route)
                    meta.add_route(route)
                case _EventMark():
                    event_route = EventRouteMetadata(
                        api=meta,
                        method=name,
                        source=mark.source,
                        resource=mark.resource,
                        action_filter=mark.action_filter,
                        object_filter=mark.object_filter,
                    )
                    method_meta.add_event(event_route)
                    meta.add_event(event_route)
                case _MethodMark():
                    pass


def _collect_injections(meta: ServiceMetadata, target: type) -> None:
    annotations = inspect.get_annotations(target)
    for name, value in vars(target).items():
        if isinstance(value, Inject):
            meta.inject(name, None, value.resource, design_type=annotations.get(name))

    init = vars(target).get("__init__")
    if init is None:
        return
    hints = inspect.get_annotations(init)
    if any(isinstance(hint, str) for hint in hints.values()):
        hints = get_type_hints(init, include_extras=True)
    parameters = list(inspect.signature(init).parameters.values())[1:]
    for index, parameter in enumerate(parameters):
        hint = hints.get(parameter.name)
        if get_origin(hint) is not Annotated:
            continue
        design_type, *metadata = get_args(hint)
        for marker in metadata:
            if isinstance(marker, Inject):
                meta.inject(None, index, marker.resource, design_type=design_type)


def _collect_handlers(meta: ServiceMetadata, target: type) -> None:
    for name, function, marks in _marked_members(target):
        for mark in marks:
            match mark:
                case _HandlerMark(override=True):
                    meta.add_override(name, function)
                case _HandlerMark():
                    meta.add_handler(name, function)
                case _HookMark(kind="initializer"):
                    meta.set_initializer(name, function)
                case _HookMark(kind="selector"):
                    meta.set_selector(name, function)
                case _HookMark(kind="activator"):
                    meta.set_activator(name, function)
                case _HookMark(kind="releasor"):
                    meta.set_releasor(name, function)


def api(
    cls: type | None = None,
    /,
    *,
    alias: str | None = None,
    registry: Registry | None = None,
) -> Any:
    """
    Class decorator declaring an Api contract and committing it.

    Usable bare (``@api``) or with arguments (``@api(alias="greeter")``).
    """

    def wrapper(target: type) -> type:
        meta = (registry or default_registry()).define_api(target)
        if not meta.committed:
            _collect_methods(meta, target)
        meta.commit(alias)
        return target

    if cls is None:
        return wrapper
    return wrapper(cls)


def service(
    cls: type | None = None,
    /,
    *,
    alias: str | None = None,
    api: type | None = None,
    final: bool = False,
    registry: Registry | None = None,
) -> Any:
    """
    Class decorator declaring a Service and committing it.

    A Service class carrying Api method marks and no ``api`` argument
    declares its own inline Api from those marks.
    """

    def wrapper(target: type) -> type:
        reg = registry or default_registry()
        meta = reg.define_service(target)
        if meta.committed:
            return target
        if api is None and _has_api_marks(target):
            inline = reg.define_api(target)
            if not inline.committed:
                _collect_methods(inline, target)
        _collect_injections(meta, target)
        _collect_handlers(meta, target)
        meta.commit(alias, api, final)
        return target

    if cls is None:
        return wrapper
    return wrapper(cls)

