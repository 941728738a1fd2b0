"""The closed set of migration graphs shipped with ob."""

from __future__ import annotations

from enum import Enum


class GraphName(Enum):
    """Migration graphs known to ob, mapped to their on-disk names."""

    HANDOFF = "obelisk-handoff"
    UPGRADE = "obelisk-upgrade"

    @property
    def file_stem(self) -> str:
        return self.value

    @classmethod
    def from_name(cls, name: str) -> "GraphName":
        """Resolve an on-disk graph name.

        Raises:
            ValueError: If *name* is not one of the known graphs.
        """
        for member in cls:
            if member.value == name:
                return member
        known = ", ".join(member.value for member in cls)
        raise ValueError(f"Invalid graph name {name!r} (expected one of: {known})")

    def __str__(self) -> str:
        return self.value
