"""
Template Notifications - Template Renderer.

Pure field substitution over stored template bodies. Three placeholder
syntaxes are supported and resolved in a fixed order:

    1. @Model.map["FieldName"]
    2. @Model.map['FieldName']
    3. {{ FieldName }}

Placeholders whose field is missing or ``None`` are left untouched.

Architecture Layer: Domain
Principles: Pure Function, No I/O, Never Raises
"""
from __future__ import annotations

import math
import re
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

import structlog

from .value_objects import RenderResult

logger = structlog.get_logger(__name__)

_DOUBLE_QUOTED_INDEXER = re.compile(r'@Model\.map\["([^"]+)"\]')
_SINGLE_QUOTED_INDEXER = re.compile(r"@Model\.map\['([^']+)'\]")
_MUSTACHE = re.compile(r"\{\{([^}]+)\}\}")


def format_value(value: Any) -> str:
    """Canonical string form of a field value (no locale or currency rules)."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if not math.isfinite(value):
            return repr(value)
        if value.is_integer():
            return str(int(value))
        return format(Decimal(repr(value)), "f")
    return str(value)


class TemplateRenderer:
    """Substitutes caller supplied fields into a raw template body."""

    PATTERNS: tuple[tuple[re.Pattern[str], bool], ...] = (
        (_DOUBLE_QUOTED_INDEXER, False),
        (_SINGLE_QUOTED_INDEXER, False),
        (_MUSTACHE, True),
    )

    def render(self, body: str, fields: Mapping[str, Any]) -> RenderResult:
        """
        Render ``body`` with ``fields``.

        Returns:
            RenderResult with the substituted body, or a failed result with
            empty content if anything goes wrong.
        """
        try:
            content = body
            for pattern, trim in self.PATTERNS:
                content = pattern.sub(self._replacer(fields, trim), content)
            return RenderResult(success=True, content=content)
        except Exception as e:
            logger.error("template_render_failed", error=str(e))
            return RenderResult(success=False, content="", error=str(e))

    @staticmethod
    def _replacer(fields: Mapping[str, Any], trim: bool):
        def replace(match: re.Match[str]) -> str:
            name = match.group(1).strip() if trim else match.group(1)
            value = fields.get(name)
            if value is None:
                return match.group(0)
            return format_value(value)
        return replace
