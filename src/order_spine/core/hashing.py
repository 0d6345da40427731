"""
Record-key derivation for submitted orders.

Every persisted order carries a ``HashKey`` that, together with the user
id, identifies the record in the store.  The key is a SHA-256 digest of
the user id, the serialized order lines and the submission instant,
encoded as standard Base64 (44 characters, fixed alphabet).

Known weakness:
    The submission instant is part of the input, so two identical
    submissions made at different instants produce different keys.  The
    key identifies a *record*; it does not deduplicate *requests*.  A
    client double-submit, or a pipeline retry of a checkout whose write
    already landed, creates a second record.  Dropping the instant would
    change every externally visible key, so the behaviour is kept.

Examples:
    >>> key = derive_idempotency_key("u1", '[{"sku": "A"}]', "2025-01-01T10:00:00Z")
    >>> len(key)
    44
    >>> key == derive_idempotency_key("u1", '[{"sku": "A"}]', "2025-01-01T10:00:00Z")
    True
    >>> key == derive_idempotency_key("u1", '[{"sku": "A"}]', "2025-01-01T10:00:01Z")
    False
"""

import base64
import hashlib

from order_spine.core.errors import IdempotencyKeyError

DEFAULT_ALGORITHM = "sha256"


def derive_idempotency_key(
    user_id: str,
    order_lines: str,
    now: str,
    *,
    algorithm: str = DEFAULT_ALGORITHM,
) -> str:
    """
    Derive the record key for an order submission.

    The three inputs are concatenated in order (user id, order lines,
    instant) without a delimiter, hashed, and Base64-encoded.

    Args:
        user_id: Caller identifier
        order_lines: Order lines serialized as text
        now: ISO-8601 submission instant
        algorithm: hashlib algorithm name

    Returns:
        Base64 digest string

    Raises:
        IdempotencyKeyError: If the hashing algorithm is unavailable.  The
            record must not be written without a key.
    """
    try:
        digest = hashlib.new(algorithm)
    except ValueError as e:
        raise IdempotencyKeyError(
            f"Hash algorithm '{algorithm}' is not available", cause=e
        ) from e

    digest.update(f"{user_id}{order_lines}{now}".encode("utf-8"))
    return base64.b64encode(digest.digest()).decode("ascii")
