import collections.abc
from typing import Any, Dict, List, Mapping, Optional, Type

from kubegate._cogs.clients import api, errors
from kubegate._cogs.configs import configuration
from kubegate._cogs.helpers import typedefs
from kubegate._cogs.structs import bodies, kinds, references

# The exact reason of "absent" resources. Other 404s (e.g. an unknown API group) are errors.
NOT_FOUND_REASON = 'NotFound'


async def read_obj(
        cls: Type[bodies.ResourceT],
        *,
        settings: configuration.ClientSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        name: str,
        logger: typedefs.Logger,
        registry: Optional[kinds.KindRegistry] = None,
) -> Optional[bodies.ResourceT]:
    """
    Read a single resource of a specific kind by its name.

    Returns ``None`` if the resource is absent, i.e. if the API responds
    with HTTP 404 and the ``"NotFound"`` reason in its status. All other
    failures, including other kinds of HTTP 404, are raised as errors.
    """
    registry = registry if registry is not None else kinds.get_default_registry()
    description = f"Failed to retrieve {registry.describe_resource(cls)}"
    try:
        raw = await api.get(
            url=resource.get_url(namespace=namespace, name=name),
            description=description,
            logger=logger,
            settings=settings,
        )
    except errors.APINotFoundError as e:
        if e.reason == NOT_FOUND_REASON:
            return None
        raise
    return errors.parse_body(cls, raw, description=description)


async def list_objs(
        cls: Type[bodies.ListT],
        *,
        settings: configuration.ClientSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        params: Optional[Mapping[str, str]] = None,
        logger: typedefs.Logger,
        registry: Optional[kinds.KindRegistry] = None,
) -> bodies.ListT:
    """
    List the objects of specific resource type.

    The cluster-scoped call is used in two cases:

    * The resource itself is cluster-scoped, and namespacing makes not sense.
    * The namespaced resource is listed in all namespaces (``namespace=None``).

    Otherwise, the namespace-scoped call is used.

    The params go to the query as is: e.g. ``labelSelector``, ``limit``,
    ``continue``. There is no automatic pagination: the continuation token
    is available in the list's metadata, and the caller decides what to do.
    """
    registry = registry if registry is not None else kinds.get_default_registry()
    description = f"Failed to list {registry.describe_list(cls)}"
    raw = await api.get(
        url=resource.get_url(namespace=namespace, params=params),
        description=description,
        logger=logger,
        settings=settings,
    )
    if not isinstance(raw, collections.abc.Mapping):
        raise errors.ProtocolError(f"{description}: the response is not a list object.")
    return errors.parse_body(cls, fill_items(raw), description=description)


def fill_items(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Fill the kind & API version of the items from the list itself.

    Kubernetes omits them in the items of the lists, since they are the same
    for all items. But the item models expect them as for the individual objects.
    """
    list_kind: Optional[str] = raw.get('kind')
    item_kind = list_kind[:-4] if list_kind and list_kind.endswith('List') else None
    items: List[Any] = []
    for item in raw.get('items') or []:
        if isinstance(item, collections.abc.Mapping):
            item = dict(item)
            if item_kind is not None:
                item.setdefault('kind', item_kind)
                if item['kind'] != item_kind:
                    raise errors.ProtocolError(f"An item of kind {item['kind']!r} "
                                               f"is found in {list_kind!r}.")
            if 'apiVersion' in raw:
                item.setdefault('apiVersion', raw['apiVersion'])
        items.append(item)
    return dict(raw, items=items)
