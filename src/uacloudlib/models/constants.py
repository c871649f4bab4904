"""Shared constants for the models layer.

Defines the attribute names stored in the ``metadata`` table, the four
type-kind tables, the license enumeration, and the filter comparators.
Placing them here keeps the catalog and store layers free of string literals
for table and attribute names.

See Also:
    [uacloudlib.catalog.parsing][]: Maps
        [AttributeName][uacloudlib.models.constants.AttributeName] values onto
        aggregate fields.
    [uacloudlib.core.store][]: Uses [TypeKind][uacloudlib.models.constants.TypeKind]
        to address the type-kind tables.
"""

from __future__ import annotations

from enum import StrEnum


class AttributeName(StrEnum):
    """Well-known ``metadata_name`` values.

    Names are stored lower-case. Any other name is accepted by the store but
    ignored by the aggregate builder.
    """

    NODESET_CREATION_TIME = "nodesetcreationtime"
    NODESET_MODIFIED_TIME = "nodesetmodifiedtime"
    VERSION = "version"
    NODESET_TITLE = "nodesettitle"
    LICENSE = "license"
    COPYRIGHT = "copyright"
    DESCRIPTION = "description"
    ADDRESS_SPACE_NAME = "addressspacename"
    ADDRESS_SPACE_DESCRIPTION = "addressspacedescription"
    ADDRESS_SPACE_ICON_URL = "addressspaceiconurl"
    DOCUMENTATION_URL = "documentationurl"
    ICON_URL = "iconurl"
    LICENSE_URL = "licenseurl"
    PURCHASING_INFO = "purchasinginfo"
    RELEASE_NOTES = "releasenotes"
    TEST_SPECIFICATION = "testspecification"
    KEYWORDS = "keywords"
    LOCALES = "locales"
    ORG_NAME = "orgname"
    ORG_DESCRIPTION = "orgdescription"
    ORG_LOGO = "orglogo"
    ORG_CONTACT = "orgcontact"
    ORG_WEBSITE = "orgwebsite"
    NUM_DOWNLOADS = "numdownloads"


class TypeKind(StrEnum):
    """The four type-kind tables sharing the ``{kind}_browsename/value/namespace`` shape.

    Declaration order is the namespace-URI lookup priority: the first row
    found in ``objecttype`` wins over ``variabletype``, and so on.

    Attributes:
        OBJECT_TYPE: ``objecttype`` table.
        VARIABLE_TYPE: ``variabletype`` table.
        DATA_TYPE: ``datatype`` table.
        REFERENCE_TYPE: ``referencetype`` table.
    """

    OBJECT_TYPE = "objecttype"
    VARIABLE_TYPE = "variabletype"
    DATA_TYPE = "datatype"
    REFERENCE_TYPE = "referencetype"

    @property
    def table(self) -> str:
        return self.value

    @property
    def id_column(self) -> str:
        return f"{self.value}_id"

    @property
    def browse_name_column(self) -> str:
        return f"{self.value}_browsename"

    @property
    def value_column(self) -> str:
        return f"{self.value}_value"

    @property
    def namespace_column(self) -> str:
        return f"{self.value}_namespace"


class License(StrEnum):
    """License under which a nodeset is published.

    Absent or unrecognised stored values map to ``CUSTOM``.
    """

    MIT = "MIT"
    APACHE_LICENSE_20 = "ApacheLicense20"
    CUSTOM = "Custom"

    @classmethod
    def parse(cls, value: str | None) -> License:
        """Map a stored license string onto a member, defaulting to ``CUSTOM``."""
        if value:
            for member in cls:
                if member.value == value:
                    return member
        return cls.CUSTOM


class Comparator(StrEnum):
    """Filter clause comparators.

    Attributes:
        EQUALS: Exact, case-sensitive match of the whole value.
        CONTAINS: Case-sensitive substring match.
        LIKE: Case-insensitive substring match.
    """

    EQUALS = "equals"
    CONTAINS = "contains"
    LIKE = "like"


METADATA_TABLE = "metadata"
"""Name of the flat attribute table."""
