"""Region id assignment."""

import hashlib
import secrets
from collections.abc import Collection

from snippet_tracker.core.canonicalize import canonicalize
from snippet_tracker.core.constants import ID_LENGTH
from snippet_tracker.core.types import AnnotatedRegion, IdStrategy


def content_id(body: str, salt: int = 0) -> str:
    """Derive a short id from the canonical form of ``body``."""
    payload = canonicalize(body)
    if salt:
        payload = f"{payload}\x00{salt}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:ID_LENGTH]


def random_id() -> str:
    return secrets.token_hex((ID_LENGTH + 1) // 2)[:ID_LENGTH]


def assign_id(
    region: AnnotatedRegion,
    taken: Collection[str] = (),
    strategy: IdStrategy = "content",
) -> str:
    """Return the region's id, generating one that is unique within ``taken`` if absent.

    Ids already present in a marker are returned unchanged, even when they
    collide with ``taken``: they are the key into snapshot history.
    """
    if region.id:
        return region.id

    if strategy == "random":
        candidate = random_id()
        while candidate in taken:
            candidate = random_id()
        return candidate

    salt = 0
    candidate = content_id(region.body)
    while candidate in taken:
        salt += 1
        candidate = content_id(region.body, salt)
    return candidate


def assign_ids(
    regions: list[AnnotatedRegion], strategy: IdStrategy = "content"
) -> list[str]:
    """Assign ids to every region of one document, in document order of start markers."""
    taken: set[str] = {region.id for region in regions if region.id}
    assigned: dict[int, str] = {}
    for index in sorted(range(len(regions)), key=lambda i: regions[i].start_line):
        region = regions[index]
        region_id = assign_id(region, taken, strategy)
        taken.add(region_id)
        assigned[index] = region_id
    return [assigned[index] for index in range(len(regions))]
