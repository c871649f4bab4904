"""UA Cloud Library exception hierarchy.

Strict internals raise these typed exceptions; the public catalog boundary
([NodesetCatalog][uacloudlib.catalog.service.NodesetCatalog]) catches them and
degrades to empty or defaulted results plus a log entry.

Exception hierarchy:

```text
CloudLibError (base -- never raised directly)
├── ConfigurationError       -- config validation, missing keys, bad YAML
├── DatabaseError             -- pool/store/query failures
│   ├── ConnectionPoolError   -- transient: pool closed, network blip
│   └── QueryError            -- permanent: bad SQL, invalid pattern
├── StorageError              -- blob storage backend failures
└── FilterExpressionError     -- unparseable ``where`` expression
```

See Also:
    [Pool][uacloudlib.core.pool.Pool]: Raises
        [ConnectionPoolError][uacloudlib.core.exceptions.ConnectionPoolError]
        when the database cannot be reached.
    [AttributeStore][uacloudlib.core.store.AttributeStore]: Raises
        [QueryError][uacloudlib.core.exceptions.QueryError] from its strict
        operations.
"""

from __future__ import annotations


class CloudLibError(Exception):
    """Base exception for all UA Cloud Library errors.

    Never raised directly -- always use a specific subclass.
    """


class ConfigurationError(CloudLibError):
    """Invalid or missing configuration (YAML, env vars, CLI flags)."""


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


class DatabaseError(CloudLibError):
    """Base for all database-related errors."""


class ConnectionPoolError(DatabaseError):
    """Transient database error: connection refused, pool closed, network blip.

    Callers may retry after a backoff.
    """


class QueryError(DatabaseError):
    """Permanent database error: bad SQL, invalid regular expression, bad data.

    Callers should NOT retry -- the query itself is wrong.
    """


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


class StorageError(CloudLibError):
    """A blob storage backend failed to find, upload, or download a file."""


# ---------------------------------------------------------------------------
# Query input
# ---------------------------------------------------------------------------


class FilterExpressionError(CloudLibError):
    """The serialized ``where`` expression could not be parsed.

    Raised by [parse_where()][uacloudlib.catalog.filters.parse_where] and
    turned into an empty candidate set by the
    [FilterEvaluator][uacloudlib.catalog.filters.FilterEvaluator].
    """
