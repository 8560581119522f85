import base64
import contextlib
import functools
import os
import ssl
import tempfile
from contextvars import ContextVar
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, TypeVar, Union, cast

import aiohttp

from kubegate._cogs.helpers import versions
from kubegate._cogs.structs import credentials

# The current connection of the API calls, unless explicitly passed to them as `context=`.
# Set by `connect()`, so that every task started inside of it has the same session.
context_var: ContextVar["APIContext"] = ContextVar('context_var')

# A typevar to show that we return a function with the same signature as given.
_F = TypeVar('_F', bound=Callable[..., Any])


def authenticated(fn: _F) -> _F:
    """
    A decorator to inject a connected session to a requesting routine.

    The context is taken either from the explicit ``context=`` kwarg,
    or from the current :func:`connect` block. There is no re-authentication:
    if the credentials are rejected, the errors are escalated to the caller.
    """
    @functools.wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        context: Optional[APIContext] = kwargs.pop('context', None)
        if context is None:
            context = context_var.get(None)
        if context is None:
            raise credentials.LoginError("Not connected: use `kubegate.connect()` "
                                         "or pass an explicit `context=`.")

        response = await fn(*args, **kwargs, context=context)
        if isinstance(response, aiohttp.ClientResponse):
            # Keep track of responses which are using this context.
            context.add_response(response)
        return response

    return cast(_F, wrapper)


@contextlib.asynccontextmanager
async def connect(info: credentials.ConnectionInfo) -> AsyncIterator["APIContext"]:
    """
    Connect to the API for all the API calls inside of the ``async with`` block.

    Usage::

        async with kubegate.connect(ConnectionInfo(server='https://...', token='...')):
            obj = await kubegate.read_obj(ConfigMapV1, ...)
    """
    context = APIContext(info)
    token = context_var.set(context)
    try:
        yield context
    finally:
        context_var.reset(token)
        await context.close()


class APIContext:
    """
    A container for an aiohttp session and the environment info.

    We assume that the whole client runs in the same event loop, so there is
    no need to split the sessions for multiple loops.
    """

    # The main contained object used by the API methods.
    session: aiohttp.ClientSession

    # Contextual information for URL building.
    server: str
    default_namespace: Optional[str]

    # List of open responses.
    responses: List[aiohttp.ClientResponse]

    def __init__(
            self,
            info: credentials.ConnectionInfo,
    ) -> None:
        super().__init__()

        # Generic aiohttp session based on the constructed credentials.
        self.session = self.make_aiohttp_session(info)

        # It is a good practice to self-identify a bit.
        if self.session.headers.get('User-Agent') is None:
            self.session.headers['User-Agent'] = f'kubegate/{versions.version or "unknown"}'

        # Add the extra payload information. We avoid overriding the constructor.
        self.server = info.server
        self.default_namespace = info.default_namespace

        self.responses = []

    def make_aiohttp_session(self, info: credentials.ConnectionInfo) -> aiohttp.ClientSession:

        # Some SSL data are not accepted directly, so we have to use temp files.
        # Do not even create temporary files if there is no need. It can be a readonly filesystem.
        with contextlib.ExitStack() as stack:

            ca_path: Optional[Union[str, os.PathLike[str]]]
            if info.ca_path:
                ca_path = info.ca_path
            elif info.ca_data:
                ca_file = stack.enter_context(tempfile.NamedTemporaryFile(buffering=0))
                ca_file.write(decode_to_pem(info.ca_data).encode('ascii'))
                ca_path = ca_file.name
            else:
                ca_path = None

            context = ssl.create_default_context(cafile=ca_path)

        if info.insecure:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE

        # The token auth part.
        headers: Dict[str, str] = {}
        if info.scheme and info.token:
            headers['Authorization'] = f'{info.scheme} {info.token}'
        elif info.scheme:
            headers['Authorization'] = f'{info.scheme}'
        elif info.token:
            headers['Authorization'] = f'Bearer {info.token}'

        # The basic auth part.
        auth: Optional[aiohttp.BasicAuth]
        if info.username and info.password:
            if 'Authorization' in headers:
                raise credentials.LoginError("Both the token & the basic auth are configured.")
            auth = aiohttp.BasicAuth(info.username, info.password)
        else:
            auth = None

        return aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(
                limit=0,
                ssl=context,
            ),
            headers=headers,
            auth=auth,
        )

    def flush_closed_responses(self) -> None:
        # There's no point keeping references to already closed responses.
        self.responses[:] = [_response for _response in self.responses if not _response.closed]

    def add_response(self, response: aiohttp.ClientResponse) -> None:
        # Keep track of responses so they can be closed later when the session is closed.
        self.flush_closed_responses()
        if not response.closed:
            self.responses.append(response)

    def close_open_responses(self) -> None:
        # Close all responses that are still open and are using this session.
        for response in self.responses:
            if not response.closed:
                response.close()
        self.responses.clear()

    async def close(self) -> None:
        # Close all open responses that use this session before closing the session itself.
        self.close_open_responses()
        await self.session.close()


def decode_to_pem(data: Union[str, bytes]) -> str:
    if isinstance(data, str) and data.startswith('-----BEGIN '):
        return data
    elif isinstance(data, bytes) and data.startswith(b'-----BEGIN '):
        return data.decode('ascii')
    else:
        return base64.b64decode(data).decode('ascii')
