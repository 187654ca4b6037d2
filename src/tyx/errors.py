"""
Exceptions raised while defining, committing and consuming metadata.

Structural errors derive from ``TypeError`` through :class:`MetadataError`.
They are programmer errors surfaced at class-load time and are not meant to
be recovered from.
"""


class MetadataError(TypeError):
    """Base class of every structural metadata violation."""


class NotAClassError(MetadataError):
    pass


class DuplicateDefinitionError(MetadataError):
    """Two distinct definitions claim the same public name."""


class DuplicateMemberError(MetadataError):
    """A handler, route or lifecycle hook is declared twice on one definition."""


class DuplicateRouteError(DuplicateMemberError):
    pass


class StructuralMismatchError(MetadataError):
    """Api/Service inheritance or implementation shapes disagree."""


class ContractViolationError(MetadataError):
    """A Service does not match the contract of the Api it implements."""


class MissingHandlerError(ContractViolationError):
    pass


class MissingOverrideError(ContractViolationError):
    pass


class StaleHandlerError(ContractViolationError):
    """A handler exists for a method the implemented Api does not declare."""


class ConsistencyError(MetadataError):
    pass


class UnresolvedResourceError(MetadataError):
    """An injection site names no token and declares no usable type."""


class ResolutionError(LookupError):
    """The container cannot produce an instance for a token."""


class ConfigError(ValueError):
    pass
