# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

import datetime
import json
import os
import threading
from unittest.mock import patch

import pytest
import yaml

from pulse_scheduler.wmap import (
    CollectWorkflowMapNode,
    DeserializationError,
    InvalidNamespaceFormat,
    InvalidPayloadKind,
    ProcessWorkflowMapNode,
    PublishWorkflowMapNode,
    SerializationError,
    WorkflowMap,
    dumps,
    from_json,
    from_yaml,
    loads,
    sample_workflow_map,
    sample_workflow_map_json,
    to_json,
    to_yaml,
)

SCENARIO_JSON = (
    '{"collect":{"metric_namespaces":["/foo/bar"],'
    '"publish":[{"plugin_name":"rabbitmq","plugin_version":5}]}}'
)

NESTED_YAML = """\
collect:
  metric_namespaces:
    - /intel/mock/foo
  process:
    - plugin_name: learn
      plugin_version: 3
      processor_config:
        rate: 0.5
      process:
        - plugin_name: rollup
          plugin_version: 1
      publish:
        - plugin_name: file
          plugin_version: 2
          publisher_config: {path: /tmp/out}
  publish:
    - plugin_name: rabbitmq
      plugin_version: 5
"""


# ---------------------------------------------------------------------------
# end-to-end scenario
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("payload", [SCENARIO_JSON, SCENARIO_JSON.encode()])
def test_scenario_decodes(payload):
    wmap = from_json(payload)
    c = wmap.collect_node
    assert c is not None
    assert c.metric_namespaces == ["/foo/bar"]
    assert c.process_nodes == []
    assert len(c.publish_nodes) == 1
    assert c.publish_nodes[0].name == "rabbitmq"
    assert c.publish_nodes[0].version == 5
    assert c.publish_nodes[0].config is None


def test_scenario_reencodes_to_same_tree():
    wmap = from_json(SCENARIO_JSON)
    again = from_json(to_json(wmap))
    assert again == wmap
    assert again == sample_workflow_map()


def test_sample_json_matches_scenario():
    assert json.loads(sample_workflow_map_json()) == {
        "collect": {
            "metric_namespaces": ["/foo/bar"],
            "process": [],
            "publish": [
                {"plugin_name": "rabbitmq", "plugin_version": 5, "publisher_config": None}
            ],
        }
    }


# ---------------------------------------------------------------------------
# round trip
# ---------------------------------------------------------------------------


def test_json_round_trip(nested_map):
    assert from_json(to_json(nested_map)) == nested_map
    assert from_json(to_json(nested_map, indent=2)) == nested_map


def test_yaml_round_trip(nested_map):
    assert from_yaml(to_yaml(nested_map)) == nested_map


def test_empty_map_round_trip():
    assert from_json(to_json(WorkflowMap())) == WorkflowMap()
    assert from_yaml(to_yaml(WorkflowMap())) == WorkflowMap()


def test_yaml_keeps_wire_key_order(nested_map):
    text = to_yaml(nested_map)
    assert text.index("metric_namespaces") < text.index("process:") < text.index("publish:")


def test_yaml_and_json_decode_to_same_tree():
    from_yaml_map = from_yaml(NESTED_YAML)
    assert from_json(json.dumps(yaml.safe_load(NESTED_YAML))) == from_yaml_map
    learn = from_yaml_map.collect_node.process_nodes[0]
    assert learn.config == {"rate": 0.5}
    assert learn.process_nodes[0].name == "rollup"
    assert learn.publish_nodes[0].config == {"path": "/tmp/out"}


def test_loads_and_dumps_dispatch_on_format(nested_map):
    for fmt in ("json", "yaml"):
        assert loads(dumps(nested_map, fmt), fmt) == nested_map
    with pytest.raises(ValueError, match="Unknown"):
        loads("{}", "toml")
    with pytest.raises(ValueError, match="Unknown"):
        dumps(nested_map, "toml")


# ---------------------------------------------------------------------------
# empty and partial documents
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("payload", ["null", "{}", '{"collect": null}'])
def test_empty_json_documents_give_empty_map(payload):
    assert from_json(payload) == WorkflowMap()


@pytest.mark.parametrize("payload", ["", "~", "collect:\n", "{}"])
def test_empty_yaml_documents_give_empty_map(payload):
    assert from_yaml(payload) == WorkflowMap()


def test_missing_fields_take_zero_values():
    wmap = from_json('{"collect": {"process": [{}]}}')
    assert wmap.collect_node.metric_namespaces == []
    assert wmap.collect_node.process_nodes == [ProcessWorkflowMapNode()]


def test_unknown_keys_are_ignored():
    wmap = from_json(
        '{"collect": {"publish": [{"plugin_name": "a", "plugin_version": 1, "extra": true}]},'
        ' "schedule": {"interval": "1s"}}'
    )
    assert wmap.collect_node.publish_nodes == [PublishWorkflowMapNode(name="a", version=1)]


# ---------------------------------------------------------------------------
# payload kind
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("decode", [from_json, from_yaml])
@pytest.mark.parametrize("payload", [42, ["collect"], None, {"collect": None}, 1.0])
def test_non_text_payload_rejected(decode, payload):
    with pytest.raises(InvalidPayloadKind) as exc_info:
        decode(payload)
    assert exc_info.value.kind == type(payload).__name__


@pytest.mark.parametrize("decode", [from_json, from_yaml])
def test_bytearray_payload_accepted(decode):
    assert decode(bytearray(SCENARIO_JSON, "utf-8")) == sample_workflow_map()


# ---------------------------------------------------------------------------
# malformed content
# ---------------------------------------------------------------------------


def test_invalid_json_wraps_parser_error():
    with pytest.raises(DeserializationError) as exc_info:
        from_json('{"collect": ')
    assert "invalid JSON" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, json.JSONDecodeError)
    assert exc_info.value.line == 1


def test_invalid_yaml_wraps_parser_error():
    with pytest.raises(DeserializationError) as exc_info:
        from_yaml("collect:\n  publish: [unclosed\n")
    assert "invalid YAML" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, yaml.YAMLError)
    assert exc_info.value.line is not None


@pytest.mark.parametrize(
    "payload, path",
    [
        ("[]", ""),
        ('{"collect": []}', "collect"),
        ('{"collect": {"metric_namespaces": "/foo"}}', "collect.metric_namespaces"),
        ('{"collect": {"metric_namespaces": [1]}}', "collect.metric_namespaces[0]"),
        ('{"collect": {"publish": {}}}', "collect.publish"),
        ('{"collect": {"publish": ["rabbitmq"]}}', "collect.publish[0]"),
        (
            '{"collect": {"publish": [{"plugin_name": 5}]}}',
            "collect.publish[0].plugin_name",
        ),
        (
            '{"collect": {"publish": [{"plugin_version": "5"}]}}',
            "collect.publish[0].plugin_version",
        ),
        (
            '{"collect": {"publish": [{"plugin_version": 5.0}]}}',
            "collect.publish[0].plugin_version",
        ),
        (
            '{"collect": {"publish": [{"plugin_version": true}]}}',
            "collect.publish[0].plugin_version",
        ),
        (
            '{"collect": {"process": [{"process": [{"publish": [{"plugin_version": []}]}]}]}}',
            "collect.process[0].process[0].publish[0].plugin_version",
        ),
    ],
)
def test_wrong_shape_reports_key_path(payload, path):
    with pytest.raises(DeserializationError) as exc_info:
        from_json(payload)
    assert exc_info.value.path == path
    assert exc_info.value.line is None


def test_yaml_wrong_shape_reports_line():
    payload = (
        "collect:\n"
        "  metric_namespaces:\n"
        "    - /foo/bar\n"
        "  publish:\n"
        "    - plugin_name: rabbitmq\n"
        "      plugin_version: five\n"
    )
    with pytest.raises(DeserializationError) as exc_info:
        from_yaml(payload)
    assert exc_info.value.path == "collect.publish[0].plugin_version"
    assert exc_info.value.line == 6
    assert str(exc_info.value).startswith("line 6: collect.publish[0].plugin_version")


def test_invalid_namespace_in_payload_rejected():
    with pytest.raises(InvalidNamespaceFormat):
        from_json('{"collect": {"metric_namespaces": ["foo.bar"]}}')


def test_deserialization_error_is_value_error():
    with pytest.raises(ValueError):
        from_json("not json")


def test_decoded_map_can_be_extended():
    wmap = from_yaml(NESTED_YAML)
    wmap.collect_node.add(PublishWorkflowMapNode(name="kafka", version=1))
    assert [p.name for p in wmap.collect_node.publish_nodes] == ["rabbitmq", "kafka"]


@pytest.mark.parametrize("payload", ["", b"", "   "])
def test_empty_json_payload_is_malformed(payload):
    with pytest.raises(DeserializationError, match="invalid JSON"):
        from_json(payload)


# ---------------------------------------------------------------------------
# settings do not leak into decoding
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("decode", [from_json, from_yaml])
def test_unrelated_bad_setting_does_not_break_decoding(decode):
    with patch.dict(os.environ, {"PULSE_WMAP_LOG_LEVEL": "verbose", "PULSE_WMAP_JSON_INDENT": "-3"}):
        assert decode(SCENARIO_JSON) == sample_workflow_map()


def test_unparseable_strictness_setting_stays_strict():
    with patch.dict(os.environ, {"PULSE_WMAP_STRICT_NAMESPACES": "maybe"}):
        with pytest.raises(InvalidNamespaceFormat):
            from_json('{"collect": {"metric_namespaces": ["foo.bar"]}}')


# ---------------------------------------------------------------------------
# namespace errors carry their location
# ---------------------------------------------------------------------------


def test_json_namespace_error_reports_key_path():
    with pytest.raises(InvalidNamespaceFormat) as exc_info:
        from_json('{"collect": {"metric_namespaces": ["/ok", "foo.bar"]}}')
    assert exc_info.value.path == "collect.metric_namespaces[1]"
    assert exc_info.value.line is None
    assert exc_info.value.namespace == "foo.bar"


def test_yaml_namespace_error_reports_line():
    payload = "collect:\n  metric_namespaces:\n    - /ok\n    - foo.bar\n"
    with pytest.raises(InvalidNamespaceFormat) as exc_info:
        from_yaml(payload)
    assert exc_info.value.path == "collect.metric_namespaces[1]"
    assert exc_info.value.line == 4
    assert str(exc_info.value).startswith("line 4: collect.metric_namespaces[1]")


# ---------------------------------------------------------------------------
# encoding opaque config values
# ---------------------------------------------------------------------------

YAML_NATIVE_CONFIG = """\
collect:
  publish:
    - plugin_name: file
      plugin_version: 1
      publisher_config:
        since: 2020-01-01
        at: 2020-01-01 10:30:00
        key: !!binary aGVsbG8=
        tags: !!set {b, a}
"""


def test_yaml_native_config_values_encode_as_json():
    wmap = from_yaml(YAML_NATIVE_CONFIG)
    config = wmap.collect_node.publish_nodes[0].config
    assert config["since"] == datetime.date(2020, 1, 1)

    encoded = json.loads(to_json(wmap))["collect"]["publish"][0]["publisher_config"]
    assert encoded == {
        "since": "2020-01-01",
        "at": "2020-01-01T10:30:00",
        "key": "aGVsbG8=",
        "tags": ["a", "b"],
    }


def test_yaml_native_config_values_round_trip_through_yaml():
    wmap = from_yaml(YAML_NATIVE_CONFIG)
    assert from_yaml(to_yaml(wmap)) == wmap


def test_unencodable_config_raises_serialization_error():
    wmap = WorkflowMap(collect_node=CollectWorkflowMapNode())
    wmap.collect_node.add(
        PublishWorkflowMapNode(name="x", version=1, config={"lock": threading.Lock()})
    )
    with pytest.raises(SerializationError, match="JSON"):
        to_json(wmap)
    with pytest.raises(SerializationError, match="YAML"):
        to_yaml(wmap)


@pytest.mark.parametrize("indent, multiline", [(None, False), (0, True), (2, True)])
def test_dumps_passes_indent_through(indent, multiline):
    text = dumps(sample_workflow_map(), "json", indent=indent)
    assert ("\n" in text) is multiline
    assert from_json(text) == sample_workflow_map()
