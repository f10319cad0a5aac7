# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Sample workflow map used by the CLI ``sample`` command and by tests."""

from .codec import to_json
from .model import CollectWorkflowMapNode, PublishWorkflowMapNode, WorkflowMap


def sample_workflow_map() -> WorkflowMap:
    """Collect ``/foo/bar`` and publish it with ``rabbitmq`` v5."""
    collect = CollectWorkflowMapNode()
    collect.add(PublishWorkflowMapNode(name="rabbitmq", version=5))
    collect.add_metric_namespace("/foo/bar")
    return WorkflowMap(collect_node=collect)


def sample_workflow_map_json() -> str:
    return to_json(sample_workflow_map())
