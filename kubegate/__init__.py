"""
The main kubegate module for all the exported functions & classes.
"""
# isort: skip_file

# Unlike all other places, where we import other modules and refer
# the functions via the modules, this is the client's top-level interface,
# as it is seen by the users. So, we export the individual functions.

from kubegate._cogs.clients.auth import (
    APIContext,
    connect,
)
from kubegate._cogs.clients.creating import (
    create_obj,
)
from kubegate._cogs.clients.deleting import (
    delete_obj,
    PropagationPolicy,
)
from kubegate._cogs.clients.errors import (
    APIError,
    APIClientError,
    APIServerError,
    APIUnauthorizedError,
    APIForbiddenError,
    APINotFoundError,
    APIConflictError,
    ProtocolError,
    StreamProtocolError,
)
from kubegate._cogs.clients.fetching import (
    read_obj,
    list_objs,
)
from kubegate._cogs.clients.patching import (
    patch_obj,
    patch_obj_raw,
    merge_patch_obj,
)
from kubegate._cogs.clients.updating import (
    replace_obj,
)
from kubegate._cogs.clients.watching import (
    stream_lines,
    watch_objs,
)
from kubegate._cogs.configs.configuration import (
    ClientSettings,
    NetworkingSettings,
    WatchingSettings,
)
from kubegate._cogs.helpers.lines import (
    LineDecoder,
)
from kubegate._cogs.helpers.typedefs import (
    Logger,
)
from kubegate._cogs.helpers.versions import (
    version as __version__,
)
from kubegate._cogs.structs.bodies import (
    KubeModel,
    KubeObject,
    KubeResource,
    KubeResourceList,
    ObjectMeta,
    ListMeta,
    Status,
    StatusDetails,
    StatusCause,
    EventType,
    ResourceEvent,
)
from kubegate._cogs.structs.credentials import (
    ConnectionInfo,
    LoginError,
)
from kubegate._cogs.structs.kinds import (
    KindInfo,
    KindRegistry,
    get_default_registry,
    set_default_registry,
    kind,
    list_of,
)
from kubegate._cogs.structs.patches import (
    JSONPatch,
    JSONPatchItem,
    JSONPatchDocument,
    TypedJSONPatchDocument,
    Patch,
)
from kubegate._cogs.structs.references import (
    Resource,
    Namespace,
    NamespaceName,
)
from kubegate._kits.loggers import (
    configure,
    LogFormat,
    ObjectLogger,
)
from kubegate import models  # registers the kinds of the bundled models

__all__ = [
    'connect', 'APIContext', 'ConnectionInfo', 'LoginError',
    'read_obj', 'list_objs', 'watch_objs', 'stream_lines',
    'create_obj', 'replace_obj', 'delete_obj', 'PropagationPolicy',
    'patch_obj', 'patch_obj_raw', 'merge_patch_obj',
    'APIError',
    'APIClientError',
    'APIServerError',
    'APIUnauthorizedError',
    'APIForbiddenError',
    'APINotFoundError',
    'APIConflictError',
    'ProtocolError',
    'StreamProtocolError',
    'ClientSettings', 'NetworkingSettings', 'WatchingSettings',
    'LineDecoder',
    'Logger',
    'KubeModel', 'KubeObject', 'KubeResource', 'KubeResourceList',
    'ObjectMeta', 'ListMeta',
    'Status', 'StatusDetails', 'StatusCause',
    'EventType', 'ResourceEvent',
    'KindInfo', 'KindRegistry', 'get_default_registry', 'set_default_registry',
    'kind', 'list_of',
    'JSONPatch', 'JSONPatchItem', 'JSONPatchDocument', 'TypedJSONPatchDocument', 'Patch',
    'Resource', 'Namespace', 'NamespaceName',
    'configure', 'LogFormat', 'ObjectLogger',
    'models',
]
