"""Pydantic models describing the page being analysed."""

from __future__ import annotations

from typing import Annotated, Literal
from urllib import parse

import pydantic

from privacy_analyzer.utils import errors
from privacy_analyzer.utils.serialization import snake_to_camel


class AnalysisTarget(pydantic.BaseModel):
    """Identity of the analysed page: its URL and hostname."""

    model_config = pydantic.ConfigDict(frozen=True)

    url: str
    host: str

    @classmethod
    def from_url(cls, url: str) -> AnalysisTarget:
        """Build a target from an absolute http(s) URL.

        Raises:
            errors.InvalidUrlError: If *url* is not absolute or has
                no host.
        """
        if not isinstance(url, str) or not url.strip():
            raise errors.InvalidUrlError(str(url), "URL is required")
        try:
            parsed = parse.urlparse(url.strip())
            host = parsed.hostname
        except ValueError as exc:
            raise errors.InvalidUrlError(url, str(exc)) from exc
        if parsed.scheme not in ("http", "https"):
            raise errors.InvalidUrlError(url, "scheme must be http or https")
        if not host:
            raise errors.InvalidUrlError(url, "missing host")
        return cls(url=url.strip(), host=host)


class ExternalScript(pydantic.BaseModel):
    """A ``<script src=...>`` element."""

    model_config = pydantic.ConfigDict(frozen=True)

    kind: Literal["external"] = "external"
    raw_src: str


class InlineScript(pydantic.BaseModel):
    """A ``<script>`` element without ``src``.

    ``ordinal_index`` is the zero-based position among inline
    scripts in document order.
    """

    model_config = pydantic.ConfigDict(frozen=True)

    kind: Literal["inline"] = "inline"
    body: str
    ordinal_index: int = pydantic.Field(ge=0)


ScriptReference = Annotated[ExternalScript | InlineScript, pydantic.Field(discriminator="kind")]


class DocumentSnapshot(pydantic.BaseModel):
    """Script and canvas data read from a live document."""

    model_config = pydantic.ConfigDict(
        alias_generator=snake_to_camel, populate_by_name=True, frozen=True
    )

    script_srcs: list[str] = pydantic.Field(default_factory=list)
    inline_scripts: list[str] = pydantic.Field(default_factory=list)
    canvas_count: int = pydantic.Field(default=0, ge=0)
