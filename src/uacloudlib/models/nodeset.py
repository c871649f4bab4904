"""Catalog aggregates reconstructed from flat attribute rows.

None of these objects is ever persisted: the aggregate builder recomputes
them on every query. All are frozen, so value equality and hashing come
from the dataclass machinery; the catalog relies on that to deduplicate
categories and organisations.

Each aggregate exposes ``to_dict()`` returning a JSON-ready dictionary with
camelCase keys (the public query field names) and ISO-8601 dates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .constants import License


if TYPE_CHECKING:
    import datetime


def _iso(value: datetime.datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True, slots=True)
class NodesetSummary:
    """Identity and version facts of one nodeset.

    Attributes:
        identifier: The nodeset id, always the one the summary was built for.
        namespace_uri: Namespace URI from the type-kind tables, or None.
        publication_date: Parsed ``nodesetcreationtime``, or None.
        last_modified: Parsed ``nodesetmodifiedtime``, or None.
        version: Free-form version string.
    """

    identifier: int
    namespace_uri: str | None = None
    publication_date: datetime.datetime | None = None
    last_modified: datetime.datetime | None = None
    version: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "namespaceUri": self.namespace_uri,
            "publicationDate": _iso(self.publication_date),
            "lastModified": _iso(self.last_modified),
            "version": self.version,
        }


@dataclass(frozen=True, slots=True)
class Category:
    """Address-space category a nodeset belongs to."""

    name: str = ""
    description: str = ""
    icon_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description, "iconUrl": self.icon_url}


@dataclass(frozen=True, slots=True)
class Organisation:
    """Contributing organisation of a nodeset."""

    name: str = ""
    description: str = ""
    logo_url: str | None = None
    contact_email: str = ""
    website: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "logoUrl": self.logo_url,
            "contactEmail": self.contact_email,
            "website": self.website,
        }


@dataclass(frozen=True, slots=True)
class NamespaceDescriptor:
    """Full public description of a nodeset.

    Fields whose attribute is absent or malformed keep their defaults:
    empty strings, None for URLs and dates, ``License.CUSTOM``, empty tuples
    and zero downloads.
    """

    nodeset: NodesetSummary
    title: str = ""
    license: License = License.CUSTOM
    copyright_text: str = ""
    description: str = ""
    category: Category = field(default_factory=Category)
    documentation_url: str | None = None
    icon_url: str | None = None
    license_url: str | None = None
    purchasing_information_url: str | None = None
    release_notes_url: str | None = None
    test_specification_url: str | None = None
    keywords: tuple[str, ...] = ()
    supported_locales: tuple[str, ...] = ()
    contributor: Organisation = field(default_factory=Organisation)
    number_of_downloads: int = 0

    @property
    def identifier(self) -> int:
        return self.nodeset.identifier

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodeset": self.nodeset.to_dict(),
            "title": self.title,
            "license": str(self.license),
            "copyrightText": self.copyright_text,
            "description": self.description,
            "category": self.category.to_dict(),
            "documentationUrl": self.documentation_url,
            "iconUrl": self.icon_url,
            "licenseUrl": self.license_url,
            "purchasingInformationUrl": self.purchasing_information_url,
            "releaseNotesUrl": self.release_notes_url,
            "testSpecificationUrl": self.test_specification_url,
            "keywords": list(self.keywords),
            "supportedLocales": list(self.supported_locales),
            "contributor": self.contributor.to_dict(),
            "numberOfDownloads": self.number_of_downloads,
        }


@dataclass(frozen=True, slots=True)
class NodesetSearchResult:
    """Keyword search hit enriched with display facts.

    Every field other than ``identifier`` is filled best-effort and falls
    back to an empty string (or None for the date and namespace URI).
    """

    identifier: int
    title: str = ""
    contributor: str = ""
    license: str = ""
    version: str = ""
    publication_date: datetime.datetime | None = None
    namespace_uri: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "title": self.title,
            "contributor": self.contributor,
            "license": self.license,
            "version": self.version,
            "publicationDate": _iso(self.publication_date),
            "namespaceUri": self.namespace_uri,
        }
