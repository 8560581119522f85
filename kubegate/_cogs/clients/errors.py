"""
K8s API errors.

The underlying client library (now, ``aiohttp``) can be replaced in the future.
We cannot rely on embedding its exceptions all over the code of the client.
Hence, we have our own hierarchy of exceptions for K8s API errors.

Low-level errors, such as the network connectivity issues, SSL/HTTPS issues,
timeouts, etc, are escalated from the client library as is, since they are
related not to the domain of K8s API, but rather to the networking and encryption.

The original errors of the client library are chained as the causes of our own
specialised errors -- for better explainability of errors in the stack traces.

Some selected statuses of K8s API errors are made into their own classes,
so that they could be intercepted and handled by the callers.
All other statuses are raised as the base classes for the client-side (4xx)
or the server-side (5xx) errors, and are distinguishable only via the fields.

Unlike the underlying client library's errors, the K8s API errors contain more
information about the reasons -- as provided by K8s API in its response bodies,
not guessed only by HTTP statuses alone -- and the description of the request
made, including the kind of the resource involved (if known).

Separately, the protocol errors are raised when the API responds successfully,
but the response cannot be understood: e.g. it is not JSON, or it does not
match the expected model, or the stream of events is malformed.
"""
import collections.abc
from typing import Any, Optional, Type

import aiohttp
import pydantic

from kubegate._cogs.structs import bodies


class APIError(Exception):
    """
    A failed request, as reported by the API.

    The payload is the ``Status`` object of the response, if it was provided
    and was parseable. The description explains which request has failed,
    e.g. ``"Failed to retrieve ConfigMap (v1) resource"``.
    """

    def __init__(
            self,
            payload: Optional[bodies.Status],
            *,
            status: int,
            description: Optional[str] = None,
    ) -> None:
        super().__init__(_format_message(payload, status=status, description=description))
        self._status = status
        self._payload = payload
        self._description = description

    @property
    def status(self) -> int:
        return self._status

    @property
    def payload(self) -> Optional[bodies.Status]:
        return self._payload

    @property
    def description(self) -> Optional[str]:
        return self._description

    @property
    def code(self) -> Optional[int]:
        return self._payload.code if self._payload else None

    @property
    def reason(self) -> Optional[str]:
        return self._payload.reason if self._payload else None

    @property
    def message(self) -> Optional[str]:
        return self._payload.message if self._payload else None

    @property
    def details(self) -> Optional[bodies.StatusDetails]:
        return self._payload.details if self._payload else None


class APIClientError(APIError):
    pass


class APIServerError(APIError):
    pass


class APIUnauthorizedError(APIClientError):
    pass


class APIForbiddenError(APIClientError):
    pass


class APINotFoundError(APIClientError):
    pass


class APIConflictError(APIClientError):
    pass


class ProtocolError(Exception):
    """
    The API's response violates the API conventions and cannot be understood.
    """


class StreamProtocolError(ProtocolError):
    """
    The API's streaming response cannot be read or understood.
    """


def _format_message(
        payload: Optional[bodies.Status],
        *,
        status: int,
        description: Optional[str],
) -> str:
    text = f"{description} (HTTP status {status})" if description else f"HTTP status {status}"
    if payload is not None and payload.reason and payload.message:
        text += f": {payload.reason}: {payload.message}"
    elif payload is not None and (payload.reason or payload.message):
        text += f": {payload.reason or payload.message}"
    return text


def get_error_class(status: int) -> Type[APIError]:
    return (
        APIUnauthorizedError if status == 401 else
        APIForbiddenError if status == 403 else
        APINotFoundError if status == 404 else
        APIConflictError if status == 409 else
        APIClientError if 400 <= status < 500 else
        APIServerError if 500 <= status < 600 else
        APIError
    )


def make_error(
        payload: Optional[bodies.Status],
        *,
        status: int,
        description: Optional[str] = None,
) -> APIError:
    """
    Build an error of the proper class for the status, e.g. for the watch-events.
    """
    cls = get_error_class(status)
    return cls(payload, status=status, description=description)


def parse_status(raw: Any) -> Optional[bodies.Status]:
    """
    Get a ``Status`` if the raw data look like one, or ``None`` if they do not.
    """
    # Better be safe: who knows which sensitive information can be dumped unless kind==Status.
    if not isinstance(raw, collections.abc.Mapping) or raw.get('kind') != 'Status':
        return None
    try:
        return bodies.Status.model_validate(raw)
    except pydantic.ValidationError:
        return None


def parse_body(
        cls: Type[bodies.ModelT],
        raw: Any,
        *,
        description: Optional[str] = None,
) -> bodies.ModelT:
    """
    Convert the raw data of a successful response to a model, or fail clearly.
    """
    try:
        return cls.model_validate(raw)
    except pydantic.ValidationError as e:
        what = f"{description}: " if description else ""
        raise ProtocolError(f"{what}unexpected response body for {cls.__name__}: {e}") from e


async def check_response(
        response: aiohttp.ClientResponse,
        *,
        description: Optional[str] = None,
) -> None:
    """
    Check for specialised K8s errors, and raise with extended information.
    """
    if not 200 <= response.status < 300:

        # Read the response's body before it is closed by raise_for_status().
        payload: Optional[bodies.Status]
        try:
            payload = parse_status(await response.json())
        except (ValueError, aiohttp.ClientError):  # unparseable or unreadable bodies
            payload = None

        error = make_error(payload, status=response.status, description=description)

        # Raise the client-specific error while keeping the original error in scope.
        # This call also closes the response's body, so it cannot be read afterwards.
        try:
            response.raise_for_status()
        except aiohttp.ClientResponseError as e:
            raise error from e

        # Non-2xx statuses below 400 are not errors for aiohttp, but they are for us.
        response.release()
        raise error
