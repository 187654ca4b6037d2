"""Class introspection helpers shared by the metadata builders."""


def base_class(cls: type | None) -> type | None:
    """Return the structural parent of ``cls``: its first direct base, or ``None`` for ``object``."""
    if cls is None or cls is object:
        return None
    bases = cls.__bases__
    if not bases or bases[0] is object:
        return None
    return bases[0]


def class_of(target: object) -> type | None:
    """Map an instance to its class; classes and ``None`` are returned as is."""
    if target is None or isinstance(target, type):
        return target
    return type(target)
