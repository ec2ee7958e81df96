"""Data models for Dropbox API responses."""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class FileMetadata:
    """Metadata for a single entry returned by ``files/list_folder``."""

    tag: str
    """Entry kind: ``file``, ``folder`` or ``deleted``"""

    name: str
    path_lower: str
    path_display: str
    id: str = ""
    size: int = 0
    content_hash: Optional[str] = None
    rev: Optional[str] = None
    server_modified: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def is_file(self) -> bool:
        """Whether this entry is a regular file."""
        return self.tag == "file"

    @property
    def is_folder(self) -> bool:
        """Whether this entry is a folder marker."""
        return self.tag == "folder"

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "FileMetadata":
        """Create FileMetadata from a listing entry.

        Args:
            data: Entry dictionary as returned by the API

        Returns:
            FileMetadata instance
        """
        path_display = data.get("path_display") or data.get("path_lower") or ""
        return cls(
            tag=data.get(".tag", "file"),
            name=data.get("name", ""),
            path_lower=data.get("path_lower") or path_display.lower(),
            path_display=path_display,
            id=data.get("id", ""),
            size=int(data.get("size", 0) or 0),
            content_hash=data.get("content_hash"),
            rev=data.get("rev"),
            server_modified=data.get("server_modified"),
            raw=data,
        )


@dataclass
class ListFolderResult:
    """One page of a ``files/list_folder`` response."""

    entries: list[FileMetadata]
    cursor: str
    has_more: bool

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "ListFolderResult":
        """Create ListFolderResult from a raw response."""
        return cls(
            entries=[
                FileMetadata.from_api_response(entry)
                for entry in data.get("entries", [])
            ],
            cursor=data.get("cursor", ""),
            has_more=bool(data.get("has_more", False)),
        )
