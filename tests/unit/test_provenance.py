"""Unit tests for YAML frontmatter rendering."""

from datetime import datetime, timezone

import yaml

from open_tasks.workflow.provenance import (
    format_iso_timestamp,
    format_metadata_yaml,
    render_with_frontmatter,
)
from open_tasks.workflow.types import TransformMetadata

TS = datetime(2025, 1, 31, 12, 0, 0, 123456, tzinfo=timezone.utc)


def test_iso_timestamp_has_millis_and_z():
    assert format_iso_timestamp(TS) == "2025-01-31T12:00:00.123Z"


def test_metadata_block_layout():
    metadata = [
        TransformMetadata(
            type="Join",
            inputs=("a", "b"),
            params={"delimiter": ", ", "outputToken": None, "tokenCount": 2},
            timestamp=TS,
        )
    ]

    assert format_metadata_yaml(metadata) == (
        "transforms:\n"
        "  - type: Join\n"
        "    inputs: [a, b]\n"
        "    params:\n"
        '      delimiter: ", "\n'
        "      outputToken: null\n"
        "      tokenCount: 2\n"
        "    timestamp: 2025-01-31T12:00:00.123Z\n"
    )


def test_empty_inputs_and_params_are_omitted():
    block = format_metadata_yaml([TransformMetadata(type="Template", timestamp=TS)])

    assert "inputs" not in block
    assert "params" not in block


def test_entries_keep_attachment_order():
    metadata = [
        TransformMetadata(type="Extract", inputs=("raw",), timestamp=TS),
        TransformMetadata(type="Join", inputs=("x",), timestamp=TS),
    ]
    parsed = yaml.safe_load(format_metadata_yaml(metadata))

    assert [t["type"] for t in parsed["transforms"]] == ["Extract", "Join"]


def test_unusual_token_names_stay_parseable():
    metadata = [
        TransformMetadata(
            type="Join",
            inputs=("has, comma", "key: value", "plain"),
            params={"pattern": "\\$([0-9.]+)"},
            timestamp=TS,
        )
    ]
    parsed = yaml.safe_load(format_metadata_yaml(metadata))

    [transform] = parsed["transforms"]
    assert transform["inputs"] == ["has, comma", "key: value", "plain"]
    assert transform["params"]["pattern"] == "\\$([0-9.]+)"


def test_render_without_metadata_is_plain_text():
    assert render_with_frontmatter("content", []) == "content"


def test_render_with_metadata():
    text = render_with_frontmatter("body", [TransformMetadata(type="Split", timestamp=TS)])

    assert text == (
        "---\n"
        "transforms:\n"
        "  - type: Split\n"
        "    timestamp: 2025-01-31T12:00:00.123Z\n"
        "---\n"
        "\n"
        "body"
    )
