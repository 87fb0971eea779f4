"""``{{input.field}}`` / ``{{steps.name.output}}`` template interpolation.

Templates are parsed into literal text and :class:`TemplatePath` placeholders
by a small recursive-descent parser, then resolved against an execution
context. Resolution is lenient by default: anything that cannot be found
renders as an empty string.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple, Union

from .contracts import ExecutionContext
from .errors import TemplateResolutionError

logger = logging.getLogger(__name__)

OPEN, CLOSE = "{{", "}}"
ROOTS = ("input", "steps")

_MISSING = object()


@dataclass(frozen=True)
class TemplatePath:
    """A dotted path such as ``steps.research.output``."""

    segments: Tuple[str, ...]

    @property
    def root(self) -> str:
        return self.segments[0]

    @property
    def step_name(self) -> Optional[str]:
        """Name of the referenced step for ``steps.<name>...`` paths."""
        if self.root == "steps" and len(self.segments) > 1:
            return self.segments[1]
        return None

    def __str__(self) -> str:
        return ".".join(self.segments)


Segment = Union[str, TemplatePath]


def _is_ident_char(ch: str) -> bool:
    return ch.isascii() and (ch.isalnum() or ch in "_-")


def _is_index(segment: str) -> bool:
    return segment.isascii() and segment.isdecimal()


class _Parser:
    """Parses one template string.

    Grammar::

        template    := (literal | placeholder)*
        placeholder := "{{" ws path ws "}}"
        path        := ident ("." ident)*
        ident       := [A-Za-z0-9_-]+

    Text that starts like a placeholder but does not match the grammar is kept
    as literal text.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def parse(self) -> List[Segment]:
        segments: List[Segment] = []
        literal: List[str] = []
        while self.pos < len(self.text):
            start = self.text.find(OPEN, self.pos)
            if start == -1:
                literal.append(self.text[self.pos :])
                break
            literal.append(self.text[self.pos : start])
            self.pos = start
            path = self._placeholder()
            if path is None:
                literal.append(OPEN)
                self.pos = start + len(OPEN)
                continue
            if literal:
                segments.append("".join(literal))
                literal = []
            segments.append(path)
        if literal and "".join(literal):
            segments.append("".join(literal))
        return [s for s in segments if s != ""]

    def _placeholder(self) -> Optional[TemplatePath]:
        saved = self.pos
        self.pos += len(OPEN)
        self._whitespace()
        path = self._path()
        self._whitespace()
        if path is None or not self.text.startswith(CLOSE, self.pos):
            self.pos = saved
            return None
        self.pos += len(CLOSE)
        return path

    def _path(self) -> Optional[TemplatePath]:
        first = self._ident()
        if first is None:
            return None
        parts = [first]
        while self.text.startswith(".", self.pos):
            self.pos += 1
            ident = self._ident()
            if ident is None:
                return None
            parts.append(ident)
        return TemplatePath(tuple(parts))

    def _ident(self) -> Optional[str]:
        start = self.pos
        while self.pos < len(self.text) and _is_ident_char(self.text[self.pos]):
            self.pos += 1
        return self.text[start : self.pos] or None

    def _whitespace(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1


def parse_template(template: str) -> List[Segment]:
    """Split ``template`` into literal strings and :class:`TemplatePath` items."""
    return _Parser(template).parse()


def template_references(template: str) -> List[TemplatePath]:
    return [s for s in parse_template(template) if isinstance(s, TemplatePath)]


def _context_mapping(context: Union[ExecutionContext, Mapping[str, Any]]) -> Mapping[str, Any]:
    if isinstance(context, ExecutionContext):
        return context.as_mapping()
    return context


def resolve_path(path: TemplatePath, context: Mapping[str, Any]) -> Any:
    """Walk ``context`` along ``path``; return ``_MISSING`` when it dead-ends."""
    if path.root not in ROOTS:
        return _MISSING
    value: Any = context
    for segment in path.segments:
        if isinstance(value, Mapping):
            value = value.get(segment, _MISSING)
        elif isinstance(value, (list, tuple)) and _is_index(segment):
            index = int(segment)
            value = value[index] if index < len(value) else _MISSING
        else:
            value = _MISSING
        if value is _MISSING:
            return _MISSING
    return value


def render_value(value: Any) -> str:
    """Render a resolved value as prompt text."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def _lookup(path: TemplatePath, context: Mapping[str, Any], strict: bool) -> Any:
    value = resolve_path(path, context)
    if value is _MISSING:
        if strict:
            raise TemplateResolutionError(str(path))
        logger.debug(f"Unresolved template placeholder {{{{{path}}}}}")
        return None
    return value


def interpolate(
    template: str,
    context: Union[ExecutionContext, Mapping[str, Any]],
    strict: bool = False,
) -> str:
    """Substitute every placeholder in ``template`` from ``context``.

    Missing paths render as ``""`` unless ``strict`` is set, in which case a
    :class:`TemplateResolutionError` is raised.
    """
    mapping = _context_mapping(context)
    rendered: List[str] = []
    for segment in parse_template(template):
        if isinstance(segment, TemplatePath):
            rendered.append(render_value(_lookup(segment, mapping, strict)))
        else:
            rendered.append(segment)
    return "".join(rendered)


def interpolate_value(
    value: Any,
    context: Union[ExecutionContext, Mapping[str, Any]],
    strict: bool = False,
) -> Any:
    """Interpolate every string inside a JSON-like structure.

    A string that is exactly one placeholder is replaced by the resolved value
    itself rather than its text rendering, so structured outputs can be passed
    through to tool parameters intact.
    """
    mapping = _context_mapping(context)
    if isinstance(value, dict):
        return {k: interpolate_value(v, mapping, strict) for k, v in value.items()}
    if isinstance(value, list):
        return [interpolate_value(v, mapping, strict) for v in value]
    if not isinstance(value, str):
        return value
    segments = parse_template(value)
    if len(segments) == 1 and isinstance(segments[0], TemplatePath):
        resolved = _lookup(segments[0], mapping, strict)
        return "" if resolved is None else resolved
    return interpolate(value, mapping, strict)
