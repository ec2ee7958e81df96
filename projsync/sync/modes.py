"""Sync directions."""

from enum import Enum


class SyncMode(str, Enum):
    """Which side is authoritative when converging a sync pair."""

    PUSH = "push"
    """Local is authoritative: upload changes, delete remote-only files"""

    PULL = "pull"
    """Remote is authoritative: download changes, delete local-only files"""

    @classmethod
    def from_string(cls, value: str) -> "SyncMode":
        """Parse a mode name, accepting the upload/download aliases.

        Raises:
            ValueError: If the name is unknown
        """
        aliases = {"upload": cls.PUSH, "download": cls.PULL}
        normalized = value.strip().lower()
        if normalized in aliases:
            return aliases[normalized]
        try:
            return cls(normalized)
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ValueError(
                f"Invalid sync mode: {value!r}. Valid modes: {valid}"
            ) from None
