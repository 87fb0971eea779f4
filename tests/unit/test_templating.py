"""Template interpolation tests."""

import pytest

from relayflow.contracts import ExecutionContext
from relayflow.errors import TemplateResolutionError
from relayflow.templating import (
    TemplatePath,
    interpolate,
    interpolate_value,
    parse_template,
    resolve_path,
    template_references,
)


def test_interpolates_input_field():
    assert interpolate("{{input.x}}", {"input": {"x": "5"}, "steps": {}}) == "5"


def test_interpolates_step_output():
    context = {"input": {}, "steps": {"a": {"output": "done"}}}

    assert interpolate("{{steps.a.output}}", context) == "done"


def test_unresolvable_path_renders_empty():
    assert interpolate("{{steps.missing.output}}", {"input": {}, "steps": {}}) == ""
    assert interpolate("[{{input.a.b.c}}]", {"input": {"a": "flat"}, "steps": {}}) == "[]"


def test_unknown_root_renders_empty():
    assert interpolate("{{env.HOME}}", {"input": {}, "steps": {}}) == ""


def test_structured_values_are_json_encoded():
    context = ExecutionContext(input={"tags": ["a", "b"], "count": 3, "ok": True})
    context.record("extract", {"total": 12.5})

    rendered = interpolate(
        "{{input.tags}} {{input.count}} {{input.ok}} {{steps.extract.output}}", context
    )

    assert rendered == '["a","b"] 3 true {"total":12.5}'


def test_none_renders_empty():
    context = ExecutionContext()
    context.record("passthrough", None)

    assert interpolate("<{{steps.passthrough.output}}>", context) == "<>"


def test_whitespace_inside_braces_is_allowed():
    assert interpolate("Hi {{ input.name }}!", {"input": {"name": "Ada"}}) == "Hi Ada!"


def test_malformed_placeholders_stay_literal():
    context = {"input": {"x": "1"}, "steps": {}}

    assert interpolate("{{input.}} {{}} {{input.x", context) == "{{input.}} {{}} {{input.x"
    assert interpolate("a {{ b", context) == "a {{ b"


def test_list_index_segments():
    assert interpolate("{{input.items.1}}", {"input": {"items": ["x", "y"]}}) == "y"


def test_non_ascii_digits_are_not_identifiers():
    context = {"input": {"items": ["a"]}, "steps": {}}

    assert interpolate("x{{input.items.²}}y", context) == "x{{input.items.²}}y"
    assert interpolate("x{{input.é}}y", context) == "x{{input.é}}y"


def test_non_ascii_index_segment_resolves_as_missing():
    path = TemplatePath(("input", "items", "٣"))
    items = ["a", "b", "c", "d"]

    assert resolve_path(path, {"input": {"items": items}}) not in items


def test_parse_template_segments():
    assert parse_template("Topic: {{input.topic}}.") == [
        "Topic: ",
        TemplatePath(("input", "topic")),
        ".",
    ]


def test_template_references_step_name():
    refs = template_references("{{steps.research.output}} and {{input.topic}}")

    assert [r.step_name for r in refs] == ["research", None]
    assert str(refs[0]) == "steps.research.output"


def test_strict_mode_raises_on_missing_path():
    with pytest.raises(TemplateResolutionError) as exc_info:
        interpolate("{{input.nope}}", {"input": {}, "steps": {}}, strict=True)

    assert exc_info.value.path == "input.nope"


def test_interpolate_value_keeps_structure_for_whole_placeholders():
    context = ExecutionContext(input={"email": "ada@example.com"})
    context.record("chunk", ["one", "two"])

    params = interpolate_value(
        {"texts": "{{steps.chunk.output}}", "query": "lead {{input.email}}", "limit": 5},
        context,
    )

    assert params == {"texts": ["one", "two"], "query": "lead ada@example.com", "limit": 5}


def test_interpolation_does_not_mutate_context():
    context = ExecutionContext(input={"x": "1"})
    before = context.model_dump()

    interpolate("{{input.x}} {{steps.a.output}}", context)

    assert context.model_dump() == before
