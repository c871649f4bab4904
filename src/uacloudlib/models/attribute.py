"""Row models for the attribute and type-kind tables.

[AttributeRow][uacloudlib.models.attribute.AttributeRow] is one
``(nodeset_id, metadata_name, metadata_value)`` row of the ``metadata``
table; [TypeRow][uacloudlib.models.attribute.TypeRow] is one row of a
type-kind table. Both validate in ``__post_init__`` so invalid instances
never reach the store.

See Also:
    [AttributeStore][uacloudlib.core.store.AttributeStore]: Reads and writes
        these rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NamedTuple

from ._validation import validate_nodeset_id, validate_str_no_null, validate_str_not_empty
from .constants import TypeKind


class AttributeDbParams(NamedTuple):
    """Positional parameters for the ``metadata`` insert/update statements."""

    nodeset_id: int
    name: str
    value: str


@dataclass(frozen=True, slots=True)
class AttributeRow:
    """A single ``metadata`` row.

    Attributes:
        nodeset_id: Identifier of the owning nodeset.
        name: Attribute name (stored lower-case by convention, not enforced).
        value: Attribute value; may be empty.

    Examples:
        ```python
        row = AttributeRow(7, "nodesettitle", "Machine Tools")
        row.to_db_params()  # AttributeDbParams(nodeset_id=7, ...)
        ```
    """

    nodeset_id: int
    name: str
    value: str

    def __post_init__(self) -> None:
        validate_nodeset_id(self.nodeset_id)
        validate_str_not_empty(self.name, "name")
        validate_str_no_null(self.value, "value")

    def to_db_params(self) -> AttributeDbParams:
        return AttributeDbParams(self.nodeset_id, self.name, self.value)

    def to_dict(self) -> dict[str, Any]:
        return {"nodesetId": self.nodeset_id, "name": self.name, "value": self.value}


@dataclass(frozen=True, slots=True)
class TypeRow:
    """A single row of one of the four type-kind tables.

    Attributes:
        nodeset_id: Identifier of the owning nodeset.
        kind: Which table the row belongs to.
        browse_name: ``{kind}_browsename`` column.
        value: ``{kind}_value`` column (the display name).
        namespace: ``{kind}_namespace`` column (the namespace URI string).
    """

    nodeset_id: int
    kind: TypeKind
    browse_name: str
    value: str
    namespace: str

    def __post_init__(self) -> None:
        validate_nodeset_id(self.nodeset_id)
        object.__setattr__(self, "kind", TypeKind(self.kind))
        validate_str_no_null(self.browse_name, "browse_name")
        validate_str_no_null(self.value, "value")
        validate_str_no_null(self.namespace, "namespace")

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodesetId": self.nodeset_id,
            "kind": str(self.kind),
            "browseName": self.browse_name,
            "value": self.value,
            "namespace": self.namespace,
        }
