"""Repository abstractions for database interactions."""

from .snapshot_repository import SnapshotRepository, payload_to_profile, profile_to_payload

__all__ = [
    "SnapshotRepository",
    "payload_to_profile",
    "profile_to_payload",
]
