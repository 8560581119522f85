"""
The registry of the kinds & API versions declared by the model classes.

The kinds are needed only to explain the errors to humans: e.g., "failed to
retrieve ConfigMap (v1) resource" is much more helpful in the logs than
an anonymous HTTP status or a Python class name.

The registry is an explicit mapping of the model classes to their kinds,
populated when the models are defined (see :mod:`kubegate.models`) ---
instead of introspecting the classes or their instances at runtime.
The registry is never used for the control flow of the API calls.

Lists are registered separately with the kind of their items, since
the errors of list requests are about the items, not about the lists.
"""
import dataclasses
from typing import Callable, Dict, Optional, TypeVar

_T = TypeVar('_T', bound=type)


@dataclasses.dataclass(frozen=True)
class KindInfo:
    kind: str
    api_version: str

    def __str__(self) -> str:
        return f'{self.kind} ({self.api_version})'


class KindRegistry:
    """
    A registry of the declared kinds for the resource & resource-list models.
    """
    _resources: Dict[type, KindInfo]
    _lists: Dict[type, KindInfo]

    def __init__(self) -> None:
        super().__init__()
        self._resources = {}
        self._lists = {}

    def register(self, cls: type, *, kind: str, api_version: str) -> None:
        self._resources[cls] = KindInfo(kind=kind, api_version=api_version)

    def register_list(self, cls: type, *, item_kind: str, api_version: str) -> None:
        self._lists[cls] = KindInfo(kind=item_kind, api_version=api_version)

    def get_kind(self, cls: type) -> Optional[KindInfo]:
        return self._resources.get(cls)

    def get_item_kind(self, cls: type) -> Optional[KindInfo]:
        return self._lists.get(cls)

    def describe_resource(self, cls: type) -> str:
        """ E.g.: ``"ConfigMap (v1) resource"``, or the class name if unknown. """
        info = self.get_kind(cls)
        return f'{info} resource' if info is not None else cls.__name__

    def describe_list(self, cls: type) -> str:
        """ E.g.: ``"ConfigMap (v1) resources"``, or the class name if unknown. """
        info = self.get_item_kind(cls)
        return f'{info} resources' if info is not None else cls.__name__


_default_registry: Optional[KindRegistry] = None


def get_default_registry() -> KindRegistry:
    """
    Get the default registry to be used by the API calls unless overridden.
    """
    global _default_registry
    if _default_registry is None:
        _default_registry = KindRegistry()
    return _default_registry


def set_default_registry(registry: KindRegistry) -> None:
    """
    Set the default registry to be used by the API calls unless overridden.
    """
    global _default_registry
    _default_registry = registry


def kind(
        kind: str,
        api_version: str,
        *,
        registry: Optional[KindRegistry] = None,
) -> Callable[[_T], _T]:
    """
    A class decorator to register a resource model with its kind.

    Usage::

        @kind('ConfigMap', 'v1')
        class ConfigMapV1(KubeResource):
            data: Optional[Dict[str, str]] = None
    """
    def decorator(cls: _T) -> _T:
        real_registry = registry if registry is not None else get_default_registry()
        real_registry.register(cls, kind=kind, api_version=api_version)
        return cls
    return decorator


def list_of(
        item_kind: str,
        api_version: str,
        *,
        registry: Optional[KindRegistry] = None,
) -> Callable[[_T], _T]:
    """
    A class decorator to register a resource-list model with its items' kind.
    """
    def decorator(cls: _T) -> _T:
        real_registry = registry if registry is not None else get_default_registry()
        real_registry.register_list(cls, item_kind=item_kind, api_version=api_version)
        return cls
    return decorator
