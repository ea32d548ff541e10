"""Shared-secret checks for admin endpoints and tooling."""

import secrets
from typing import Optional


def verify_admin_secret(provided: Optional[str], expected: Optional[str]) -> bool:
    """
    Compare a provided admin secret against the configured one.

    An unset secret rejects everything, so a deployment that forgot to
    configure ADMIN_SECRET is locked rather than open.
    """
    if not expected or not provided:
        return False
    return secrets.compare_digest(provided.encode(), expected.encode())


__all__ = ["verify_admin_secret"]
