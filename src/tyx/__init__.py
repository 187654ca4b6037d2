"""
tyx: a metadata registry turning decorated classes into a graph of Apis and Services.

## Core Design Principle: Define, Then Commit

Decorators record raw facts (methods, routes, handlers, injection sites,
lifecycle hooks) on mutable definitions. Exactly one ``commit`` per class
then resolves inheritance, cross-links the Api and its Services, validates
the contract and publishes the definition in the registry. Every structural
violation raises at commit time.

## Example

```python
from tyx import api, get, handler, service

@api
class Greeter:
    @get("/hello")
    def hello(self) -> str: ...

@service(api=Greeter)
class GreeterImpl:
    @handler
    def hello(self) -> str:
        return "Hello"

@service
class GreeterImplV2(GreeterImpl):
    def hello(self) -> str:  # MissingOverrideError: must be marked @override
        return "Hi"
```
"""

from tyx.api import ApiMetadata
from tyx.config import Activation, ContainerConfig, load_config, parse_config
from tyx.container import Container
from tyx.decorators import (
    Inject,
    activate,
    api,
    delete,
    event,
    get,
    handler,
    http,
    initialize,
    inject,
    method,
    override,
    post,
    put,
    release,
    select,
    service,
)
from tyx.errors import (
    ConfigError,
    ConsistencyError,
    ContractViolationError,
    DuplicateDefinitionError,
    DuplicateMemberError,
    DuplicateRouteError,
    MetadataError,
    MissingHandlerError,
    MissingOverrideError,
    NotAClassError,
    ResolutionError,
    StaleHandlerError,
    StructuralMismatchError,
    UnresolvedResourceError,
)
from tyx.method import EventRouteMetadata, HttpRouteMetadata, MethodMetadata
from tyx.registry import Registry, default_registry
from tyx.routes import RouteEntry, RouteKind, describe, route_table
from tyx.service import (
    CONSTRUCTOR,
    HandlerMetadata,
    InjectMetadata,
    ServiceMetadata,
    injection_key,
)
from tyx.utils import base_class
