"""
Connection-related structures.

Only the "rudimentary" connection information is supported: everything
usable in a generic HTTP client for a single endpoint, and nothing more:

* TCP server host & port (as a URL).
* SSL verification/ignorance flag.
* SSL certificate authority (as a path or as the PEM/base64 data).
* HTTP ``Authorization: Basic username:password``.
* HTTP ``Authorization: Bearer token`` (or other schemes).
* URL's default namespace for the cases when this is implied.

Loading the credentials from kubeconfigs, service accounts, or cloud
providers is not done here: the callers construct the info themselves.
"""
import dataclasses
from typing import Optional


class LoginError(Exception):
    """ Raised when the connection info is inconsistent or unusable. """


@dataclasses.dataclass(frozen=True)
class ConnectionInfo:
    """
    A single endpoint with specific credentials and connection flags to use.
    """
    server: str  # e.g. "https://localhost:443"
    ca_path: Optional[str] = None
    ca_data: Optional[bytes] = None
    insecure: Optional[bool] = None
    username: Optional[str] = None
    password: Optional[str] = None
    scheme: Optional[str] = None  # RFC-7235/5.1: e.g. Bearer, Basic, Digest, etc.
    token: Optional[str] = None
    default_namespace: Optional[str] = None
