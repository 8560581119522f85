from typing import Any, Callable, Mapping, Optional, Type

from kubegate._cogs.clients import api, errors
from kubegate._cogs.configs import configuration
from kubegate._cogs.helpers import typedefs
from kubegate._cogs.structs import bodies, kinds, patches, references

JSON_PATCH_MEDIA_TYPE = 'application/json-patch+json'
MERGE_PATCH_MEDIA_TYPE = 'application/merge-patch+json'


async def patch_obj(
        cls: Type[bodies.ResourceT],
        fn: Callable[[patches.TypedJSONPatchDocument[bodies.ResourceT]], Any],
        *,
        settings: configuration.ClientSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        name: str,
        subresource: Optional[str] = None,
        logger: typedefs.Logger,
        registry: Optional[kinds.KindRegistry] = None,
) -> bodies.ResourceT:
    """
    Patch a resource with a JSON-patch built on the resource's model fields.

    The function is called with an empty typed patch document to fill::

        await patch_obj(DeploymentV1, lambda p: p.replace(('spec', 'replicas'), 3), ...)

    Returns the patched resource as reported by the server.
    """
    document = patches.TypedJSONPatchDocument(cls)
    fn(document)
    return await _patch(
        cls,
        payload=document.as_json_patch(),
        content_type=JSON_PATCH_MEDIA_TYPE,
        settings=settings,
        resource=resource,
        namespace=namespace,
        name=name,
        subresource=subresource,
        logger=logger,
        registry=registry,
    )


async def patch_obj_raw(
        cls: Type[bodies.ResourceT],
        fn: Callable[[patches.JSONPatchDocument], Any],
        *,
        settings: configuration.ClientSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        name: str,
        subresource: Optional[str] = None,
        logger: typedefs.Logger,
        registry: Optional[kinds.KindRegistry] = None,
) -> bodies.ResourceT:
    """
    Patch a resource with a JSON-patch built on the raw JSON-pointers.

    Useful for the fields not declared in the model, or for the cases
    when the model is not known in advance at all.
    """
    document = patches.JSONPatchDocument()
    fn(document)
    return await _patch(
        cls,
        payload=document.as_json_patch(),
        content_type=JSON_PATCH_MEDIA_TYPE,
        settings=settings,
        resource=resource,
        namespace=namespace,
        name=name,
        subresource=subresource,
        logger=logger,
        registry=registry,
    )


async def merge_patch_obj(
        cls: Type[bodies.ResourceT],
        patch: Mapping[str, Any],
        *,
        body: Optional[object] = None,
        settings: configuration.ClientSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        name: str,
        subresource: Optional[str] = None,
        logger: typedefs.Logger,
        registry: Optional[kinds.KindRegistry] = None,
) -> bodies.ResourceT:
    """
    Patch a resource with a merge-patch: ``None`` values remove the fields.

    If the current body of the resource is known (as a model or as raw data),
    the merge-patch is sent as a JSON-patch against that body: only the fields
    that actually change are sent, and the lists are replaced as a whole::

        await merge_patch_obj(DeploymentV1, {'spec': {'replicas': 3}}, body=deployment, ...)
    """
    if body is not None:
        ops = patches.Patch(bodies.dump(patch)).as_json_patch(bodies.dump(body))
        payload, content_type = ops, JSON_PATCH_MEDIA_TYPE
    else:
        payload, content_type = dict(patch), MERGE_PATCH_MEDIA_TYPE
    return await _patch(
        cls,
        payload=payload,
        content_type=content_type,
        settings=settings,
        resource=resource,
        namespace=namespace,
        name=name,
        subresource=subresource,
        logger=logger,
        registry=registry,
    )


async def _patch(
        cls: Type[bodies.ResourceT],
        *,
        payload: object,
        content_type: str,
        settings: configuration.ClientSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        name: str,
        subresource: Optional[str],
        logger: typedefs.Logger,
        registry: Optional[kinds.KindRegistry],
) -> bodies.ResourceT:
    registry = registry if registry is not None else kinds.get_default_registry()
    description = f"Failed to patch {registry.describe_resource(cls)}"
    raw = await api.patch(
        url=resource.get_url(namespace=namespace, name=name, subresource=subresource),
        headers={'Content-Type': content_type},
        payload=payload,
        description=description,
        settings=settings,
        logger=logger,
    )
    return errors.parse_body(cls, raw, description=description)
