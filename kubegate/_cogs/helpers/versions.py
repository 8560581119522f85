"""
Detecting the client's own version.

The codebase does not contain the version directly except in the packaging.
The installed distribution's metadata is the only source of truth.

The version is determined only once at startup when the code is loaded.
"""
import importlib.metadata
from typing import Optional

version: Optional[str] = None

try:
    name, *_ = __name__.split('.')  # usually "kubegate", unless renamed/forked.
    version = importlib.metadata.version(name)
except importlib.metadata.PackageNotFoundError:
    pass  # not installed, e.g. used from the source tree.
