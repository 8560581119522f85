"""
The models of the core API group (``v1``).
"""
from typing import Dict, List, Optional

from kubegate._cogs.structs import bodies, kinds


@kinds.kind('ConfigMap', 'v1')
class ConfigMapV1(bodies.KubeResource):
    data: Optional[Dict[str, str]] = None
    binary_data: Optional[Dict[str, str]] = None
    immutable: Optional[bool] = None


@kinds.list_of('ConfigMap', 'v1')
class ConfigMapListV1(bodies.KubeResourceList[ConfigMapV1]):
    pass


class NamespaceSpecV1(bodies.KubeModel):
    finalizers: Optional[List[str]] = None


class NamespaceStatusV1(bodies.KubeModel):
    phase: Optional[str] = None  # "Active" or "Terminating"


@kinds.kind('Namespace', 'v1')
class NamespaceV1(bodies.KubeResource):
    spec: Optional[NamespaceSpecV1] = None
    status: Optional[NamespaceStatusV1] = None


@kinds.list_of('Namespace', 'v1')
class NamespaceListV1(bodies.KubeResourceList[NamespaceV1]):
    pass
