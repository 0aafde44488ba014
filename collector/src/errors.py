"""
Exception taxonomy for the collector run.

Each failure class maps to one handling policy in ``main.run_once``:

- ConfigurationError: credentials missing, run aborts before any I/O.
- TransportError: HTTP timeout, connection failure or non-2xx status;
  aborts the current fetch branch only.
- SchemaError: the store rejected an existence check or a declaration;
  aborts the run.
- MalformedResponseError: a 2xx response without the expected nested
  fields; nothing is published for that branch.
- StoreError: raised by the store adapter for any backend failure.

CHANGELOG:
- 2026-03-02: Initial creation (STORY-102)

TODO:
- None
"""

from __future__ import annotations


class CollectorError(Exception):
    """Base class for all collector failures."""


class ConfigurationError(CollectorError):
    """Required configuration (site id, API key) is absent."""


class TransportError(CollectorError):
    """Upstream HTTP call failed (timeout, DNS, connection, non-2xx).

    Attributes:
        status_code: HTTP status code when the server answered, else None.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedResponseError(CollectorError):
    """A successful response lacked the expected nested fields."""


class StoreError(CollectorError):
    """The state store backend failed."""


class SchemaError(CollectorError):
    """Schema reconciliation failed against the state store."""
