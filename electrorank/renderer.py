"""Typed template substitution for the generated HTML pages."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from html import escape as html_escape
from pathlib import Path
from typing import Dict, FrozenSet, Mapping

from .config import TEMPLATE_DIR
from .errors import RenderError

logger = logging.getLogger(__name__)

_PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([A-Z][A-Z0-9_]*)\s*\}\}")

_COMMON_TEXT_KEYS = frozenset({"TITLE", "DESCRIPTION", "KEYWORDS", "URL", "SITE_NAME"})


@dataclass(frozen=True)
class TemplateSpec:
    """A template file plus the placeholder keys it accepts.

    Text keys are HTML-escaped on substitution; markup keys are trusted
    fragments assembled by the page builder and inserted verbatim.
    """

    name: str
    filename: str
    text_keys: FrozenSet[str]
    markup_keys: FrozenSet[str] = frozenset()

    @property
    def keys(self) -> FrozenSet[str]:
        return self.text_keys | self.markup_keys


TEMPLATES: Dict[str, TemplateSpec] = {
    "category": TemplateSpec(
        name="category",
        filename="category.html",
        text_keys=_COMMON_TEXT_KEYS | {"CATEGORY_NAME", "HEADING", "INTRO_TEXT"},
        markup_keys=frozenset({"PRODUCTS", "INTERNAL_LINKS"}),
    ),
    "product": TemplateSpec(
        name="product",
        filename="product.html",
        text_keys=_COMMON_TEXT_KEYS
        | {
            "PRODUCT_NAME",
            "CATEGORY",
            "CATEGORY_NAME",
            "BRAND",
            "PRICE",
            "RATING",
            "REVIEW_COUNT",
            "SCORE",
            "IMAGE_URL",
            "AFFILIATE_URL",
        },
        markup_keys=frozenset(
            {"SPECIFICATIONS", "DESCRIPTION_CONTENT", "PROS", "CONS", "INTERNAL_LINKS"}
        ),
    ),
    "comparison": TemplateSpec(
        name="comparison",
        filename="comparison.html",
        text_keys=_COMMON_TEXT_KEYS | {"HEADING", "INTRO_TEXT"},
        markup_keys=frozenset(
            {"COMPARISON_TABLE", "PRODUCTS_DETAIL", "VERDICT", "INTERNAL_LINKS"}
        ),
    ),
}

_TEMPLATE_CACHE: Dict[Path, str] = {}


def _read_template(path: Path) -> str:
    cached = _TEMPLATE_CACHE.get(path)
    if cached is not None:
        return cached
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as error:
        raise RenderError(f"Unable to load template {path.name}: {error}") from error
    _TEMPLATE_CACHE[path] = text
    return text


def render(
    template_name: str,
    fields: Mapping[str, object],
    *,
    template_dir: Path | None = None,
) -> str:
    """Substitute ``fields`` into the named template.

    Unknown field keys and undeclared template placeholders raise
    ``RenderError``. Declared keys that are not supplied render empty.
    """

    spec = TEMPLATES.get(template_name)
    if spec is None:
        raise RenderError(f"Unknown template {template_name!r}")
    unknown = sorted(set(fields) - spec.keys)
    if unknown:
        raise RenderError(
            f"Template {template_name!r} does not accept: {', '.join(unknown)}"
        )
    template = _read_template((template_dir or TEMPLATE_DIR) / spec.filename)

    def _replace(match: re.Match[str]) -> str:
        key = match.group(1)
        if key not in spec.keys:
            raise RenderError(f"Template {spec.filename} uses undeclared placeholder {key}")
        value = fields.get(key)
        if value is None:
            logger.debug("No value for %s in %s template", key, template_name)
            return ""
        text = str(value)
        if key in spec.text_keys:
            return html_escape(text)
        return text

    return _PLACEHOLDER_PATTERN.sub(_replace, template)
