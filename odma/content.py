from __future__ import annotations

from typing import Any, BinaryIO

from .names import OdmaId


class RemoteContent:
    """
    Handle to a binary content stream stored in the repository.

    Decoding a CONTENT property only yields this handle; bytes are fetched
    when `open_stream()` is called.
    """

    def __init__(self, connection: Any, repository_id: OdmaId, content_id: str, size: int):
        self._connection = connection
        self.repository_id = repository_id
        self.content_id = content_id
        self.size = size

    def __repr__(self) -> str:
        return f"RemoteContent({self.content_id!r}, size={self.size})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RemoteContent):
            return NotImplemented
        return (self.repository_id, self.content_id, self.size) == (
            other.repository_id,
            other.content_id,
            other.size,
        )

    def __hash__(self) -> int:
        return hash((self.repository_id, self.content_id, self.size))

    def open_stream(self) -> BinaryIO:
        return self._connection.get_content_stream(self.repository_id, self.content_id)
