"""
Helpers for orchestrating asyncio tasks & futures.

Only the type definitions are needed at the moment: the streaming requests
accept a "stopper" future from the caller, and use only its done-callbacks.
"""
import asyncio
from typing import TYPE_CHECKING, Any

# A workaround for a difference in tasks at runtime and type-checking time.
# Otherwise, at runtime: TypeError: 'type' object is not subscriptable.
if TYPE_CHECKING:
    Future = asyncio.Future[Any]
else:
    Future = asyncio.Future
