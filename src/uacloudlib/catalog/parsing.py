"""
Declarative attribute parsing for catalog aggregates.

Each aggregate field fed from the ``metadata`` table is described by an
[AttributeField][uacloudlib.catalog.parsing.AttributeField]: which attribute
name it reads, which dotted target path it fills, and which parser coerces
the stored text. [parse_fields][uacloudlib.catalog.parsing.parse_fields]
applies a table of fields to a nodeset's attribute mapping, silently
dropping values the parser rejects so the target keeps its default.

Parsers never raise. They return the parsed value or the private ``_SKIP``
sentinel.

See Also:
    [uacloudlib.catalog.builder][]: Turns the parsed mapping into aggregates.
"""

from __future__ import annotations

import datetime
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from rfc3986 import uri_reference
from rfc3986.exceptions import ValidationError
from rfc3986.validators import Validator

from uacloudlib.models import AttributeName, License


if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping


_SKIP: Any = object()

_UINT32_LIMIT = 2**32
_COUNT_PATTERN = re.compile(r"\+?\d+")

# Invariant-culture layouts accepted after ISO-8601 fails.
_DATETIME_FORMATS: tuple[str, ...] = (
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
    "%d %B %Y",
    "%B %d, %Y",
    "%a, %d %b %Y %H:%M:%S GMT",
)

# Schemes whose URIs must carry an authority to be usable as links.
_HIERARCHICAL_SCHEMES = frozenset({"http", "https", "ftp", "ftps", "opc.tcp"})

_URL_VALIDATOR = (
    Validator()
    .require_presence_of("scheme")
    .check_validity_of("scheme", "host", "port", "path", "query", "fragment")
)


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------


def parse_text(value: str) -> Any:
    return value if isinstance(value, str) else _SKIP


def parse_url(value: str) -> Any:
    """Accept an absolute RFC 3986 reference; return it stripped."""
    if not isinstance(value, str) or not value.strip():
        return _SKIP
    raw = value.strip()
    uri = uri_reference(raw)
    try:
        _URL_VALIDATOR.validate(uri)
    except ValidationError:
        return _SKIP
    if uri.scheme.lower() in _HIERARCHICAL_SCHEMES and not uri.host:
        return _SKIP
    return raw


def optional_url(value: str | None) -> str | None:
    """Return a valid absolute URL or None; used for the namespace URI."""
    if value is None:
        return None
    parsed = parse_url(value)
    return None if parsed is _SKIP else parsed


def optional_datetime(value: str | None) -> datetime.datetime | None:
    """Return the parsed timestamp or None."""
    if value is None:
        return None
    parsed = parse_datetime(value)
    return None if parsed is _SKIP else parsed


def parse_datetime(value: str) -> Any:
    """Parse a timestamp locale-independently; naive results are UTC.

    ISO-8601 is tried first, then ``_DATETIME_FORMATS`` in order.
    """
    if not isinstance(value, str) or not value.strip():
        return _SKIP
    raw = value.strip()
    parsed: datetime.datetime | None = None
    try:
        parsed = datetime.datetime.fromisoformat(raw)
    except ValueError:
        for fmt in _DATETIME_FORMATS:
            try:
                parsed = datetime.datetime.strptime(raw, fmt)  # noqa: DTZ007
                break
            except ValueError:
                continue
    if parsed is None:
        return _SKIP
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.UTC)
    return parsed


def parse_license(value: str) -> Any:
    return License.parse(value) if isinstance(value, str) else _SKIP


def parse_csv(value: str) -> Any:
    """Split on commas without trimming; empty input is skipped."""
    if not isinstance(value, str) or not value:
        return _SKIP
    return tuple(value.split(","))


def parse_count(value: str) -> Any:
    """Parse an unsigned 32-bit decimal count."""
    if not isinstance(value, str):
        return _SKIP
    raw = value.strip()
    if not _COUNT_PATTERN.fullmatch(raw):
        return _SKIP
    count = int(raw)
    return count if count < _UINT32_LIMIT else _SKIP


# ---------------------------------------------------------------------------
# Field tables
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AttributeField:
    """Maps one stored attribute onto one aggregate field.

    Attributes:
        attribute: The ``metadata_name`` read.
        target: Dotted path of the field filled, e.g. ``"category.name"``.
            A leading segment of ``nodeset``, ``category`` or ``contributor``
            addresses the nested aggregate.
        parser: Coerces the stored text, returning ``_SKIP`` on invalid input.
    """

    attribute: AttributeName
    target: str
    parser: Callable[[str], Any]


SUMMARY_FIELDS: tuple[AttributeField, ...] = (
    AttributeField(AttributeName.NODESET_CREATION_TIME, "nodeset.publication_date", parse_datetime),
    AttributeField(AttributeName.NODESET_MODIFIED_TIME, "nodeset.last_modified", parse_datetime),
    AttributeField(AttributeName.VERSION, "nodeset.version", parse_text),
)

CATEGORY_FIELDS: tuple[AttributeField, ...] = (
    AttributeField(AttributeName.ADDRESS_SPACE_NAME, "category.name", parse_text),
    AttributeField(AttributeName.ADDRESS_SPACE_DESCRIPTION, "category.description", parse_text),
    AttributeField(AttributeName.ADDRESS_SPACE_ICON_URL, "category.icon_url", parse_url),
)

CONTRIBUTOR_FIELDS: tuple[AttributeField, ...] = (
    AttributeField(AttributeName.ORG_NAME, "contributor.name", parse_text),
    AttributeField(AttributeName.ORG_DESCRIPTION, "contributor.description", parse_text),
    AttributeField(AttributeName.ORG_LOGO, "contributor.logo_url", parse_url),
    AttributeField(AttributeName.ORG_CONTACT, "contributor.contact_email", parse_text),
    AttributeField(AttributeName.ORG_WEBSITE, "contributor.website", parse_url),
)

NAMESPACE_FIELDS: tuple[AttributeField, ...] = (
    *SUMMARY_FIELDS,
    AttributeField(AttributeName.NODESET_TITLE, "title", parse_text),
    AttributeField(AttributeName.LICENSE, "license", parse_license),
    AttributeField(AttributeName.COPYRIGHT, "copyright_text", parse_text),
    AttributeField(AttributeName.DESCRIPTION, "description", parse_text),
    *CATEGORY_FIELDS,
    AttributeField(AttributeName.DOCUMENTATION_URL, "documentation_url", parse_url),
    AttributeField(AttributeName.ICON_URL, "icon_url", parse_url),
    AttributeField(AttributeName.LICENSE_URL, "license_url", parse_url),
    AttributeField(AttributeName.PURCHASING_INFO, "purchasing_information_url", parse_url),
    AttributeField(AttributeName.RELEASE_NOTES, "release_notes_url", parse_url),
    AttributeField(AttributeName.TEST_SPECIFICATION, "test_specification_url", parse_url),
    AttributeField(AttributeName.KEYWORDS, "keywords", parse_csv),
    AttributeField(AttributeName.LOCALES, "supported_locales", parse_csv),
    *CONTRIBUTOR_FIELDS,
    AttributeField(AttributeName.NUM_DOWNLOADS, "number_of_downloads", parse_count),
)


def parse_fields(
    attributes: Mapping[str, str], fields: Iterable[AttributeField]
) -> dict[str, Any]:
    """Apply a field table to an attribute mapping.

    Attribute names not named by any field are ignored. Values rejected by
    their parser are left out of the result.

    Args:
        attributes: ``metadata_name -> metadata_value`` for one nodeset.
        fields: The [AttributeField][uacloudlib.catalog.parsing.AttributeField]
            table to apply.

    Returns:
        ``target -> parsed value`` for every accepted attribute.
    """
    result: dict[str, Any] = {}
    for entry in fields:
        raw = attributes.get(entry.attribute)
        if raw is None:
            continue
        parsed = entry.parser(raw)
        if parsed is not _SKIP:
            result[entry.target] = parsed
    return result


def split_targets(parsed: Mapping[str, Any], prefix: str) -> dict[str, Any]:
    """Extract the ``prefix.*`` entries of a parsed mapping, prefix removed."""
    head = prefix + "."
    return {key[len(head) :]: value for key, value in parsed.items() if key.startswith(head)}


def top_level(parsed: Mapping[str, Any]) -> dict[str, Any]:
    """Return the parsed entries whose target has no nested prefix."""
    return {key: value for key, value in parsed.items() if "." not in key}


__all__ = [
    "CATEGORY_FIELDS",
    "CONTRIBUTOR_FIELDS",
    "NAMESPACE_FIELDS",
    "SUMMARY_FIELDS",
    "AttributeField",
    "optional_datetime",
    "optional_url",
    "parse_count",
    "parse_csv",
    "parse_datetime",
    "parse_fields",
    "parse_license",
    "parse_text",
    "parse_url",
    "split_targets",
    "top_level",
]
