"""
Custom exceptions for the nftlife.io module and the record stores.

Purpose
- Provide IO-layer specific error types that map cleanly to responsibilities in nftlife.io.
- Keep nftlife.core as the source of truth for lifecycle/schema/versioning errors
  (see nftlife.core.errors).

Source of truth and boundaries
- nftlife.core.errors.NftError subclasses are raised by the lifecycle components.
- nftlife.core.errors.SchemaError / VersionMismatch are raised by the record model and codec.
- Store errors (shared by InMemoryStore and FileStore):
  - StoreError: base of record-store failures.
  - RecordNotFound: no record at the address.
  - RecordExists: insert over an existing record.
  - ConcurrentModification: a compare-and-swap saw a foreign write.
- nftlife.io raises Io* errors for filesystem/writer/manifest concerns:
  - IoConfigError: invalid or unsupported configuration.
  - IoSchemaError: DataFrame failed validation against nftlife.core.tables descriptors.
  - IoWriteError: atomic write path failed (tmp write/fsync/rename).
  - IoManifestError: manifest load/write/rebuild errors.

Notes
- These exceptions do not perform any IO and are stdlib-only.
"""

from __future__ import annotations


class StoreError(Exception):
    """Base class for record-store failures; ``code`` names the failure in logs and the journal."""

    code: str = "StoreError"


class RecordNotFound(StoreError, KeyError):
    """
    Raised when no record exists at an address.

    Notes:
        Also a KeyError so mapping-style callers can catch it naturally.
    """

    code = "RecordNotFound"

    def __str__(self) -> str:
        return Exception.__str__(self)


class RecordExists(StoreError):
    """Raised when inserting a record at an address that is already occupied."""

    code = "RecordExists"


class ConcurrentModification(StoreError):
    """
    Raised when compare-and-swap finds a record different from the expected one.

    Notes:
        The ledger holds per-record locks around every operation, so this only
        surfaces when a writer bypasses the ledger.
    """

    code = "ConcurrentModification"


class IoError(Exception):
    """
    Base class for IO-related errors in nftlife.io.

    Notes:
        Use this as a catch-all for IO-layer failures, distinct from nftlife.core errors.
    """


class IoConfigError(IoError, ValueError):
    """
    Raised when IO configuration is invalid or unsupported.

    Examples:
        - Invalid journal bucket size (< 1)
    """


class IoSchemaError(IoError):
    """
    Raised when a DataFrame fails schema validation against nftlife.core.tables descriptors.

    Notes:
        Validation aligns with descriptor dtypes and required/nullable columns.
        Scalar columns (i64, str) may be safely cast prior to raising.
    """


class IoWriteError(IoError):
    """
    Raised when an append/write operation fails to complete atomically.

    Notes:
        The write path is tmp file -> fsync -> os.replace(tmp, final). Failures at any step
        surface as IoWriteError (with best-effort cleanup of tmp files).
    """


class IoManifestError(IoError):
    """
    Raised when a table manifest is missing, corrupt, or inconsistent.

    Notes:
        Includes failures to load, write (atomic rename), or rebuild manifests.
    """
