from typing import Optional, Type

from kubegate._cogs.clients import api, errors
from kubegate._cogs.configs import configuration
from kubegate._cogs.helpers import typedefs
from kubegate._cogs.structs import bodies, kinds, references


async def replace_obj(
        cls: Type[bodies.ResourceT],
        *,
        settings: configuration.ClientSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        name: str,
        body: bodies.ResourceT,
        logger: typedefs.Logger,
        registry: Optional[kinds.KindRegistry] = None,
) -> bodies.ResourceT:
    """
    Replace a resource entirely with a new body.

    If the body contains the resource version, the replacement is optimistic:
    it fails with :class:`APIConflictError` if the resource has been changed
    since that version. Nothing is merged or retried in that case.
    """
    registry = registry if registry is not None else kinds.get_default_registry()
    description = f"Failed to replace {registry.describe_resource(cls)}"
    raw = await api.put(
        url=resource.get_url(namespace=namespace, name=name),
        payload=body,
        description=description,
        logger=logger,
        settings=settings,
    )
    return errors.parse_body(cls, raw, description=description)
