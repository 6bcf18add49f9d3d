"""
URL template resolver.

Substitutes ``{{ name }}`` placeholders in a URL. Known names are
replaced in a single pass; unknown ones are left exactly as written so
a partially templated URL still resolves.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping

from debrepack.core.errors import TemplateError
from debrepack.core.models.architecture import Architecture

logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


def template_variables(version: str, arch: Architecture) -> dict[str, str]:
    """Build the variable mapping for one (version, architecture) pair."""
    variables = arch.template_names()
    variables["version"] = version
    return variables


def resolve(template: str, variables: Mapping[str, str]) -> str:
    """Substitute recognized placeholders in ``template``.

    Substituted values are never rescanned, so a value that itself
    looks like ``{{ x }}`` comes through literally.
    """

    def _sub(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in variables:
            return variables[name]
        return match.group(0)

    return _PLACEHOLDER_RE.sub(_sub, template)


def unresolved_placeholders(template: str, variables: Mapping[str, str]) -> list[str]:
    """Names in ``template`` that ``variables`` does not define."""
    return [
        name for name in _PLACEHOLDER_RE.findall(template)
        if name not in variables
    ]


def resolve_url(
    template: str,
    version: str,
    arch: Architecture,
    *,
    strict: bool = False,
) -> str:
    """Resolve a URL template for one architecture.

    Unknown placeholders are logged; with ``strict`` they are fatal.
    """
    variables = template_variables(version, arch)
    missing = unresolved_placeholders(template, variables)
    if missing:
        if strict:
            raise TemplateError(
                f"Unresolved placeholders in {template!r}: {', '.join(missing)}"
            )
        logger.warning(
            "Leaving unknown placeholders in %s: %s", template, ", ".join(missing)
        )
    return resolve(template, variables)
