"""
Watching and streaming watch-events.

The watch-stream is a long-lived GET request with ``?watch=true``,
which responds with one JSON object per line for every change of the resources:
``{"type": "ADDED", "object": {...}}``. The stream ends when the server closes
it (e.g. on the server-side timeout), or when the caller's stopper is done.

There is no listing before watching and no reconnecting after the stream ends:
the callers decide on that. The resource version to continue from is known
from the listing (``list_objs()``) or from the last seen event's object.

Every line is mapped to an event independently of other lines. A line
that cannot be mapped breaks the stream, since the following events
cannot be trusted either: the consumer would miss an unknown change.
"""
import collections.abc
import json
import logging
from typing import AsyncIterator, Dict, Mapping, Optional, Type

import aiohttp
import pydantic

from kubegate._cogs.aiokits import aiotasks
from kubegate._cogs.clients import api, errors
from kubegate._cogs.configs import configuration
from kubegate._cogs.helpers import typedefs
from kubegate._cogs.structs import bodies, kinds, references

logger = logging.getLogger(__name__)

# A special event type for the API failures within the stream, e.g. "410 Gone".
ERROR_EVENT_TYPE = 'ERROR'


async def stream_lines(
        *,
        settings: configuration.ClientSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        since: Optional[str] = None,
        params: Optional[Mapping[str, str]] = None,
        stopper: Optional[aiotasks.Future] = None,
        description: Optional[str] = None,
        logger: typedefs.Logger = logger,
) -> AsyncIterator[str]:
    """
    Watch objects of a specific resource type, and stream the raw lines.

    The cluster-scoped call is used in two cases:

    * The resource itself is cluster-scoped, and namespacing makes not sense.
    * The namespaced resource is watched in all namespaces (``namespace=None``).

    Otherwise, the namespace-scoped call is used.
    """
    full_params: Dict[str, str] = dict(params or {})
    full_params['watch'] = 'true'
    if since is not None:
        full_params['resourceVersion'] = since
    if settings.watching.server_timeout is not None:
        full_params['timeoutSeconds'] = str(settings.watching.server_timeout)

    connect_timeout = (
        settings.watching.connect_timeout if settings.watching.connect_timeout is not None else
        settings.networking.connect_timeout if settings.networking.connect_timeout is not None else
        settings.networking.request_timeout
    )

    # Stream the lines from the response until it is closed server-side,
    # or until it is closed client-side by the stopper's callbacks.
    where = f'in {namespace!r}' if namespace is not None else 'cluster-wide'
    logger.debug(f"Starting the watch-stream for {resource} {where}.")
    try:
        async for line in api.stream(
            url=resource.get_url(namespace=namespace, params=full_params),
            description=description,
            logger=logger,
            settings=settings,
            stopper=stopper,
            timeout=aiohttp.ClientTimeout(
                total=settings.watching.client_timeout,
                sock_connect=connect_timeout,
            ),
        ):
            yield line
    finally:
        logger.debug(f"Stopping the watch-stream for {resource} {where}.")


async def watch_objs(
        cls: Type[bodies.ResourceT],
        *,
        settings: configuration.ClientSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        since: Optional[str] = None,
        params: Optional[Mapping[str, str]] = None,
        stopper: Optional[aiotasks.Future] = None,
        logger: typedefs.Logger = logger,
        registry: Optional[kinds.KindRegistry] = None,
) -> AsyncIterator[bodies.ResourceEvent[bodies.ResourceT]]:
    """
    Watch objects of a specific resource type, and stream the typed events.

    Usage::

        async for event in watch_objs(ConfigMapV1, resource=..., namespace='default', ...):
            print(event.type, event.object.metadata.name)
    """
    registry = registry if registry is not None else kinds.get_default_registry()
    description = f"Failed to watch {registry.describe_resource(cls)}"
    async for line in stream_lines(
        settings=settings,
        resource=resource,
        namespace=namespace,
        since=since,
        params=params,
        stopper=stopper,
        description=description,
        logger=logger,
    ):
        yield parse_event(cls, line, description=description)


def parse_event(
        cls: Type[bodies.ResourceT],
        line: str,
        *,
        description: Optional[str] = None,
) -> bodies.ResourceEvent[bodies.ResourceT]:
    """
    Map one line of the watch-stream to a typed event.

    The error events are raised as the API errors. Anything else that is not
    an event, blank lines included, is a protocol error.
    """
    try:
        raw = json.loads(line)
    except json.JSONDecodeError as e:
        raise errors.StreamProtocolError(f"Malformed line in the watch-stream: {line!r}") from e

    if isinstance(raw, collections.abc.Mapping) and raw.get('type') == ERROR_EVENT_TYPE:
        status = errors.parse_status(raw.get('object'))
        code = status.code if status is not None and status.code else 500
        raise errors.make_error(status, status=code, description=description)

    try:
        return bodies.ResourceEvent[cls].model_validate(raw)  # type: ignore
    except pydantic.ValidationError as e:
        raise errors.StreamProtocolError(f"Unexpected event in the watch-stream: {e}") from e
