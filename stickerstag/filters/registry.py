"""Filter registry."""

from typing import Any, Type

from stickerstag.exceptions import InvalidParameter
from .base import BaseFilter

# Global filter registry, keyed by filter id and alias
filter_registry: dict[str, Type[BaseFilter]] = {}


def register_filter(filter_id: str, *aliases: str):
    """Decorator to register a filter class under its id and optional aliases.

    Sets filter_type on the class.
    """

    def decorator(cls: Type[BaseFilter]):
        cls.filter_type = filter_id  # type: ignore[attr-defined]
        for key in (filter_id, *aliases):
            filter_registry[key.lower()] = cls
        return cls

    return decorator


def load_builtin_filters():
    """Import all built-in filter modules to trigger registration."""
    from . import artistic, color, kernels  # noqa: F401


def get_filter_class(name: str) -> Type[BaseFilter]:
    """Look up a filter class by id or alias (case-insensitive)."""
    load_builtin_filters()
    filter_cls = filter_registry.get(str(name).strip().lower())
    if filter_cls is None:
        raise InvalidParameter(f"Unknown filter: {name}", stage=str(name))
    return filter_cls


def get_filter(name: str, **params: Any) -> BaseFilter:
    """Instantiate a registered filter by id or alias."""
    return get_filter_class(name).create(**params)


def list_filters() -> list[Type[BaseFilter]]:
    """All registered filter classes, each once, sorted by id."""
    load_builtin_filters()
    unique = {cls.filter_type: cls for cls in filter_registry.values()}
    return [unique[key] for key in sorted(unique)]
