"""Shared serialization helpers.

Provides the ``snake_to_camel`` alias generator used by every
Pydantic model config, and the JSON dump helper used for report
export so that the CLI, the HTTP service and exported files share
one wire shape.
"""

from __future__ import annotations

from datetime import UTC, datetime

import pydantic


def snake_to_camel(name: str) -> str:
    """Convert a snake_case string to camelCase.

    Args:
        name: A snake_case identifier such as
            ``"third_party_domains"``.

    Returns:
        The camelCase equivalent, e.g. ``"thirdPartyDomains"``.
        Acronym-bearing names (``fingerprinting_apis``) become
        ``fingerprintingAPIs``.
    """
    parts = name.split("_")
    return parts[0] + "".join(_ACRONYMS.get(w, w.capitalize()) for w in parts[1:])


# Words rendered in upper case to match the extension's message keys.
_ACRONYMS = {"apis": "APIs", "dom": "DOM"}


def to_json(model: pydantic.BaseModel, *, indent: int | None = 2) -> str:
    """Dump *model* as camelCase JSON (pretty-printed by default)."""
    return model.model_dump_json(by_alias=True, indent=indent, exclude_none=True)


def to_camel_dict(model: pydantic.BaseModel) -> dict[str, object]:
    """Dump *model* to a JSON-compatible dict with camelCase keys."""
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def format_iso_timestamp(moment: datetime) -> str:
    """Format *moment* as ISO-8601 UTC with milliseconds and a ``Z`` suffix.

    Naive datetimes are taken as local time.
    """
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
