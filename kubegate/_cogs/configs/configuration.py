"""
All configuration flags, options, settings to fine-tune a client.

All settings are grouped semantically just for convenience
(instead of a flat mega-object with all the values in it).

Some of the settings are optional, some are not (but all of them have
reasonable defaults). The settings are passed explicitly to every API call,
so that several differently configured clients can coexist in one process.

There are no settings for retries or backoffs: the client does not retry
anything on its own. The callers decide on their retrying policies.
"""
import dataclasses
from typing import Optional


@dataclasses.dataclass
class NetworkingSettings:

    request_timeout: Optional[float] = 5 * 60  # == aiohttp.client.DEFAULT_TIMEOUT
    """
    A timeout for the whole request-response cycle of the regular API calls.
    ``None`` disables the timeout.
    """

    connect_timeout: Optional[float] = None
    """
    A timeout for establishing a connection (including the SSL handshake).
    ``None`` means that only the request timeout applies.
    """


@dataclasses.dataclass
class WatchingSettings:

    server_timeout: Optional[float] = None
    """
    The maximum duration of one streaming request. Sent to the server
    as ``timeoutSeconds``. If ``None``, obey the server-side timeouts.
    """

    client_timeout: Optional[float] = None
    """
    An HTTP/HTTPS session timeout to use in watch requests.
    """

    connect_timeout: Optional[float] = None
    """
    An HTTP/HTTPS connection timeout to use in watch requests.
    If ``None``, the networking's connect timeout is used.
    """

    chunk_size: int = 2048
    """
    How many bytes to read from the stream at once (at most).

    The lines are assembled from the chunks regardless of their boundaries,
    so the chunk size affects only the latency & the number of iterations.
    """


@dataclasses.dataclass
class ClientSettings:
    networking: NetworkingSettings = dataclasses.field(default_factory=NetworkingSettings)
    watching: WatchingSettings = dataclasses.field(default_factory=WatchingSettings)
