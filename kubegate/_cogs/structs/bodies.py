"""
All the structures coming from/to the Kubernetes API.

The usage of these classes is spread over the codebase, so they are extracted
into a separate module of such type definitions.

The bodies are ``pydantic`` models: the API's JSON documents are validated
and converted into them when received, and serialized back when sent.
The Python-side field names are in ``snake_case``, while the API-side names
are in ``camelCase`` (as aliases); both can be used to construct the models.

The models are frozen: they are the snapshots of the resources as they were
at the moment of the API call, and are never updated by the client. To make
changes, construct new models (e.g. via ``model_copy(update=...)``), or patch.

Only the fields used by the client itself are declared. All other fields
are preserved as is (``extra='allow'``), so that no information is lost
when the models are received, stored, and sent back.
"""
import collections.abc
import datetime
import enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

import pydantic
from pydantic.alias_generators import to_camel


# For the scalars only: datetimes, decimals, UUIDs, etc.
_SCALARS = pydantic.TypeAdapter(Any)


class KubeModel(pydantic.BaseModel):
    """ The root of all API structures: the naming & validation conventions. """
    model_config = pydantic.ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='allow',
        frozen=True,
    )


class KubeObject(KubeModel):
    """ Anything that declares its kind & API version (not all fields do). """
    kind: Optional[str] = None
    api_version: Optional[str] = None


class ObjectMeta(KubeModel):
    name: Optional[str] = None
    generate_name: Optional[str] = None
    namespace: Optional[str] = None
    uid: Optional[str] = None
    resource_version: Optional[str] = None
    generation: Optional[int] = None
    labels: Optional[Dict[str, str]] = None
    annotations: Optional[Dict[str, str]] = None
    finalizers: Optional[List[str]] = None
    creation_timestamp: Optional[datetime.datetime] = None
    deletion_timestamp: Optional[datetime.datetime] = None


class ListMeta(KubeModel):
    resource_version: Optional[str] = None
    continue_: Optional[str] = pydantic.Field(default=None, alias='continue')
    remaining_item_count: Optional[int] = None


class KubeResource(KubeObject):
    """ An addressable object of the API: with the name, namespace, etc. """
    metadata: ObjectMeta = pydantic.Field(default_factory=ObjectMeta)


ResourceT = TypeVar('ResourceT', bound=KubeResource)
ModelT = TypeVar('ModelT', bound=pydantic.BaseModel)


class KubeResourceList(KubeObject, Generic[ResourceT]):
    """ A list of resources of one kind, as returned from the list requests. """
    metadata: ListMeta = pydantic.Field(default_factory=ListMeta)
    items: List[ResourceT] = pydantic.Field(default_factory=list)


ListT = TypeVar('ListT', bound=KubeResourceList[Any])


class StatusCause(KubeModel):
    field: Optional[str] = None
    reason: Optional[str] = None
    message: Optional[str] = None


class StatusDetails(KubeModel):
    name: Optional[str] = None
    group: Optional[str] = None
    kind: Optional[str] = None
    uid: Optional[str] = None
    causes: Optional[List[StatusCause]] = None
    retry_after_seconds: Optional[int] = None


# https://kubernetes.io/docs/reference/generated/kubernetes-api/v1.19/#status-v1-meta
class Status(KubeObject):
    """
    The outcome of an operation, usually a failed one.

    The ``reason`` is machine-readable (e.g. ``"NotFound"``, ``"Conflict"``),
    the ``message`` is human-readable. Both can be absent.
    """
    metadata: ListMeta = pydantic.Field(default_factory=ListMeta)
    status: Optional[str] = None  # "Success" or "Failure"
    message: Optional[str] = None
    reason: Optional[str] = None
    code: Optional[int] = None
    details: Optional[StatusDetails] = None


class EventType(str, enum.Enum):
    """ The types of the resource changes, as streamed in the watch-events. """
    ADDED = 'ADDED'
    MODIFIED = 'MODIFIED'
    DELETED = 'DELETED'


class ResourceEvent(KubeModel, Generic[ResourceT]):
    """ A change of a resource, with the resource's snapshot after the change. """
    type: EventType
    object: ResourceT


def dump(obj: Any) -> Any:
    """
    Convert the models to the JSON-compatible data (also inside dicts & lists).

    The API-side field names are used, the unset (``None``) model fields
    are omitted, enums are represented by their names (not by their ordinals).

    Mind that ``None`` values in the plain dicts are preserved as they are:
    in the merge-patches, they mean the removal of the fields.
    """
    if isinstance(obj, pydantic.BaseModel):
        return obj.model_dump(mode='json', by_alias=True, exclude_none=True)
    elif isinstance(obj, enum.Enum):
        return obj.name
    elif isinstance(obj, collections.abc.Mapping):
        return {key: dump(val) for key, val in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [dump(val) for val in obj]
    else:
        return _SCALARS.dump_python(obj, mode='json')
