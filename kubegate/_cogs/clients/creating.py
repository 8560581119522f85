from typing import Optional, Type

from kubegate._cogs.clients import api, errors
from kubegate._cogs.configs import configuration
from kubegate._cogs.helpers import typedefs
from kubegate._cogs.structs import bodies, kinds, references


async def create_obj(
        cls: Type[bodies.ResourceT],
        *,
        settings: configuration.ClientSettings,
        resource: references.Resource,
        namespace: references.Namespace = None,
        body: bodies.ResourceT,
        logger: typedefs.Logger,
        registry: Optional[kinds.KindRegistry] = None,
) -> bodies.ResourceT:
    """
    Create a resource, return it as created by the server.

    The namespace of the body is used if the namespace is not set explicitly.
    """
    if namespace is None and resource.namespaced:
        namespace = references.NamespaceName(body.metadata.namespace) if body.metadata.namespace else None

    registry = registry if registry is not None else kinds.get_default_registry()
    description = f"Failed to create {registry.describe_resource(cls)}"
    raw = await api.post(
        url=resource.get_url(namespace=namespace),
        payload=body,
        description=description,
        logger=logger,
        settings=settings,
    )
    return errors.parse_body(cls, raw, description=description)
