# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

import logging

import pytest

import pulse_scheduler.config as config_mod
from pulse_scheduler.logconfig import ROOT_LOGGER_NAME
from pulse_scheduler.wmap import (
    CollectWorkflowMapNode,
    ProcessWorkflowMapNode,
    PublishWorkflowMapNode,
    WorkflowMap,
)


@pytest.fixture(autouse=True)
def reset_config_and_logging():
    config_mod._config = None
    yield
    config_mod._config = None
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)


@pytest.fixture
def nested_map() -> WorkflowMap:
    """collect -> [learn(v3) -> [rollup(v1) -> [file(v2)]], rabbitmq(v5)], kafka(v1)."""
    rollup = ProcessWorkflowMapNode(name="rollup", version=1, config={"window": "10s"})
    rollup.add(PublishWorkflowMapNode(name="file", version=2, config={"path": "/tmp/out"}))

    learn = ProcessWorkflowMapNode(name="learn", version=3, config={"rate": 0.5, "tags": ["a"]})
    learn.add(rollup)
    learn.add(PublishWorkflowMapNode(name="rabbitmq", version=5))

    collect = CollectWorkflowMapNode()
    collect.add_metric_namespace("/intel/mock/foo")
    collect.add_metric_namespace("/intel/mock/bar")
    collect.add(learn)
    collect.add(PublishWorkflowMapNode(name="kafka", version=1, config="topic=metrics"))
    return WorkflowMap(collect_node=collect)
