"""
A few concrete resource models, registered in the default kind registry.

The models can be declared the same way for any other resources::

    @kubegate.kind('MyResource', 'example.com/v1')
    class MyResourceV1(kubegate.KubeResource):
        spec: Optional[Dict[str, Any]] = None

    @kubegate.list_of('MyResource', 'example.com/v1')
    class MyResourceListV1(kubegate.KubeResourceList[MyResourceV1]):
        pass
"""
from kubegate.models.apps_v1 import (
    DeploymentListV1,
    DeploymentSpecV1,
    DeploymentStatusV1,
    DeploymentV1,
    LabelSelectorRequirementV1,
    LabelSelectorV1,
)
from kubegate.models.core_v1 import (
    ConfigMapListV1,
    ConfigMapV1,
    NamespaceListV1,
    NamespaceSpecV1,
    NamespaceStatusV1,
    NamespaceV1,
)

__all__ = [
    'ConfigMapV1', 'ConfigMapListV1',
    'NamespaceV1', 'NamespaceListV1', 'NamespaceSpecV1', 'NamespaceStatusV1',
    'DeploymentV1', 'DeploymentListV1', 'DeploymentSpecV1', 'DeploymentStatusV1',
    'LabelSelectorV1', 'LabelSelectorRequirementV1',
]
