import collections.abc
from typing import Any, Dict, Optional, Type, Union

from typing_extensions import Literal

from kubegate._cogs.clients import api, errors
from kubegate._cogs.configs import configuration
from kubegate._cogs.helpers import typedefs
from kubegate._cogs.structs import bodies, kinds, references

PropagationPolicy = Literal["Orphan", "Background", "Foreground"]


async def delete_obj(
        cls: Type[bodies.ResourceT],
        *,
        settings: configuration.ClientSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        name: str,
        propagation_policy: Optional[PropagationPolicy] = None,
        logger: typedefs.Logger,
        registry: Optional[kinds.KindRegistry] = None,
) -> Union[bodies.ResourceT, bodies.Status]:
    """
    Delete a resource.

    Depending on the resource and its finalizers, the API responds either
    with the resource being deleted (with the deletion timestamp set),
    or with a ``Status`` of the successful deletion. Both are returned typed.
    """
    payload: Optional[Dict[str, Any]] = None
    if propagation_policy is not None:
        payload = {'apiVersion': 'v1', 'kind': 'DeleteOptions', 'propagationPolicy': propagation_policy}

    registry = registry if registry is not None else kinds.get_default_registry()
    description = f"Failed to delete {registry.describe_resource(cls)}"
    raw = await api.delete(
        url=resource.get_url(namespace=namespace, name=name),
        payload=payload,
        description=description,
        logger=logger,
        settings=settings,
    )
    if isinstance(raw, collections.abc.Mapping) and raw.get('kind') == 'Status':
        return errors.parse_body(bodies.Status, raw, description=description)
    return errors.parse_body(cls, raw, description=description)
