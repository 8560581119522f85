"""
The models of the ``apps/v1`` API group.

Only the fields needed for scaling & rollouts are declared. The pod template
and other fields are kept as they come, but are not validated.
"""
from typing import Any, Dict, List, Optional

from kubegate._cogs.structs import bodies, kinds


class LabelSelectorRequirementV1(bodies.KubeModel):
    key: str
    operator: str  # "In", "NotIn", "Exists", "DoesNotExist"
    values: Optional[List[str]] = None


class LabelSelectorV1(bodies.KubeModel):
    match_labels: Optional[Dict[str, str]] = None
    match_expressions: Optional[List[LabelSelectorRequirementV1]] = None


class DeploymentSpecV1(bodies.KubeModel):
    replicas: Optional[int] = None
    selector: Optional[LabelSelectorV1] = None
    template: Optional[Dict[str, Any]] = None
    paused: Optional[bool] = None
    min_ready_seconds: Optional[int] = None
    revision_history_limit: Optional[int] = None


class DeploymentStatusV1(bodies.KubeModel):
    observed_generation: Optional[int] = None
    replicas: Optional[int] = None
    updated_replicas: Optional[int] = None
    ready_replicas: Optional[int] = None
    available_replicas: Optional[int] = None
    unavailable_replicas: Optional[int] = None


@kinds.kind('Deployment', 'apps/v1')
class DeploymentV1(bodies.KubeResource):
    spec: Optional[DeploymentSpecV1] = None
    status: Optional[DeploymentStatusV1] = None


@kinds.list_of('Deployment', 'apps/v1')
class DeploymentListV1(bodies.KubeResourceList[DeploymentV1]):
    pass
