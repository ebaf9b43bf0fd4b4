"""Default access mode resolution.

Pure function, no framework imports.
"""

from __future__ import annotations

from neo4j_context.domain.models import AccessMode


def resolve_access_mode(*, allow_write: bool, readonly: bool) -> AccessMode | None:
    """Derive the session default access mode from the configuration flags.

    ``readonly`` dominates ``allow_write``. With neither flag set, answer
    ``None`` so the driver default (write) applies.
    """
    if readonly:
        return AccessMode.READ
    if allow_write:
        return AccessMode.WRITE
    return None
