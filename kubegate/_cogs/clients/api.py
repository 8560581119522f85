import asyncio
import codecs
import json
from typing import Any, AsyncIterator, Mapping, Optional

import aiohttp
from aiohttp import hdrs

from kubegate._cogs.aiokits import aiotasks
from kubegate._cogs.clients import auth, errors
from kubegate._cogs.configs import configuration
from kubegate._cogs.helpers import lines, typedefs
from kubegate._cogs.structs import bodies

DEFAULT_ENCODING = 'utf-8'


@auth.authenticated
async def get_default_namespace(
        *,
        context: Optional[auth.APIContext] = None,
) -> Optional[str]:
    if context is None:
        raise RuntimeError("API instance is not injected by the decorator.")
    return context.default_namespace


@auth.authenticated
async def request(
        method: str,
        url: str,  # relative to the server/api root.
        *,
        settings: configuration.ClientSettings,
        payload: Optional[object] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        description: Optional[str] = None,
        context: Optional[auth.APIContext] = None,  # injected by the decorator
        logger: typedefs.Logger,
) -> aiohttp.ClientResponse:
    if context is None:  # for type-checking!
        raise RuntimeError("API instance is not injected by the decorator.")

    if '://' not in url:
        url = context.server.rstrip('/') + '/' + url.lstrip('/')

    if timeout is None:
        timeout = aiohttp.ClientTimeout(
            total=settings.networking.request_timeout,
            sock_connect=settings.networking.connect_timeout,
        )

    what = f"{method.upper()} {url}"
    try:
        logger.debug(f"Request: {what}")
        response = await context.session.request(
            method=method,
            url=url,
            json=bodies.dump(payload) if payload is not None else None,
            headers=headers,
            timeout=timeout,
        )
        await errors.check_response(response, description=description)  # but do not parse it!

    except errors.APIClientError as e:
        logger.debug(f"Request failed: {what} -> {e!r}")
        raise
    except (aiohttp.ClientError, errors.APIError, asyncio.TimeoutError) as e:
        logger.error(f"Request failed: {what} -> {e!r}")
        raise
    else:
        return response


async def _request_json(
        method: str,
        url: str,
        *,
        settings: configuration.ClientSettings,
        payload: Optional[object] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        description: Optional[str] = None,
        logger: typedefs.Logger,
) -> Any:
    response = await request(
        method=method,
        url=url,
        payload=payload,
        headers=headers,
        timeout=timeout,
        description=description,
        settings=settings,
        logger=logger,
    )
    async with response:
        try:
            return await response.json()
        except (json.JSONDecodeError, aiohttp.ContentTypeError) as e:
            what = f"{description}: " if description else ""
            raise errors.ProtocolError(f"{what}the response is not JSON: {e}") from e


async def get(
        url: str,  # relative to the server/api root.
        *,
        settings: configuration.ClientSettings,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        description: Optional[str] = None,
        logger: typedefs.Logger,
) -> Any:
    return await _request_json('get', url, headers=headers, timeout=timeout,
                               description=description, settings=settings, logger=logger)


async def post(
        url: str,  # relative to the server/api root.
        *,
        settings: configuration.ClientSettings,
        payload: Optional[object] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        description: Optional[str] = None,
        logger: typedefs.Logger,
) -> Any:
    return await _request_json('post', url, payload=payload, headers=headers, timeout=timeout,
                               description=description, settings=settings, logger=logger)


async def put(
        url: str,  # relative to the server/api root.
        *,
        settings: configuration.ClientSettings,
        payload: Optional[object] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        description: Optional[str] = None,
        logger: typedefs.Logger,
) -> Any:
    return await _request_json('put', url, payload=payload, headers=headers, timeout=timeout,
                               description=description, settings=settings, logger=logger)


async def patch(
        url: str,  # relative to the server/api root.
        *,
        settings: configuration.ClientSettings,
        payload: Optional[object] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        description: Optional[str] = None,
        logger: typedefs.Logger,
) -> Any:
    return await _request_json('patch', url, payload=payload, headers=headers, timeout=timeout,
                               description=description, settings=settings, logger=logger)


async def delete(
        url: str,  # relative to the server/api root.
        *,
        settings: configuration.ClientSettings,
        payload: Optional[object] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        description: Optional[str] = None,
        logger: typedefs.Logger,
) -> Any:
    return await _request_json('delete', url, payload=payload, headers=headers, timeout=timeout,
                               description=description, settings=settings, logger=logger)


async def stream(
        url: str,  # relative to the server/api root.
        *,
        settings: configuration.ClientSettings,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        stopper: Optional[aiotasks.Future] = None,
        description: Optional[str] = None,
        logger: typedefs.Logger,
) -> AsyncIterator[str]:
    """
    Stream the text lines of a long-lived response, as they arrive.

    The stream ends when the server closes the connection, or when
    the stopper future is done (in that case, it is a normal end, not an error,
    and the trailing unterminated line, if any, is not yielded).
    """
    response = await request(
        method='get',
        url=url,
        headers=headers,
        timeout=timeout,
        description=description,
        settings=settings,
        logger=logger,
    )
    response_close_callback = lambda _: response.close()  # to remove the positional arg.
    if stopper is not None:
        stopper.add_done_callback(response_close_callback)
    try:
        async with response:
            encoding = get_encoding(response)
            try:
                async for line in iter_lines(
                    response.content,
                    encoding=encoding,
                    chunk_size=settings.watching.chunk_size,
                    stopper=stopper,
                ):
                    yield line
            except UnicodeDecodeError as e:
                raise errors.StreamProtocolError(f"Undecodable bytes in the stream: {e}") from e
    except (aiohttp.ClientConnectionError, aiohttp.ClientPayloadError):
        if stopper is not None and stopper.done():
            pass
        else:
            raise
    finally:
        if stopper is not None:
            stopper.remove_done_callback(response_close_callback)


def get_encoding(response: aiohttp.ClientResponse) -> str:
    """
    Detect the text encoding of the response from its declared content type.
    """
    if hdrs.CONTENT_TYPE not in response.headers:
        raise errors.StreamProtocolError("Response is missing 'Content-Type' header.")
    encoding = response.charset or DEFAULT_ENCODING
    try:
        codecs.lookup(encoding)
    except LookupError as e:
        raise errors.StreamProtocolError(f"Unsupported charset: {encoding!r}") from e
    return encoding


async def iter_lines(
        content: aiohttp.StreamReader,
        *,
        encoding: str = DEFAULT_ENCODING,
        chunk_size: int = 2048,
        stopper: Optional[aiotasks.Future] = None,
) -> AsyncIterator[str]:
    """
    Iterate line by line over the response's content.

    Usage::

        async for line in iter_lines(response.content, encoding='utf-8'):
            pass

    This is an equivalent of::

        async for line in response.content:
            pass

    Except that the aiohttp's line iteration fails if the accumulated buffer
    length is above 2**17 bytes, i.e. 128 KB (`aiohttp.streams.DEFAULT_LIMIT`
    for the buffer's low-watermark, multiplied by 2 for the high-watermark).
    Kubernetes secrets and other fields can be much longer, up to MBs in length.
    And it recognises only the LF line terminators, and does not decode
    the text with the declared charset.

    Only one chunk is read at a time; the next one is read only when all
    the lines of the previous one are consumed.
    """
    decoder = lines.LineDecoder(encoding)
    async for data in content.iter_chunked(chunk_size):
        for line in decoder.decode(data):
            if stopper is not None and stopper.done():
                return
            yield line
        del data

    # The trailing line is incomplete if the stream is interrupted, so it is ignored.
    if stopper is not None and stopper.done():
        return
    for line in decoder.flush():
        yield line
