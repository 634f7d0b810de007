"""
Result tree produced by a crawl, plus text rendering and JSON export.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, List, Dict, Any, Iterator

UNKNOWN_CONTENT_TYPE = "unknown"

NIL_ENTRY_MESSAGE = "This entry is nil and cannot be printed."


class ResultWriteError(Exception):
    """Raised when a result tree cannot be written to disk."""
    pass


@dataclass
class CrawlEntry:
    """
    One node of the crawl result tree.

    ``children`` holds one pre-allocated slot per admitted link. Each slot
    is written exactly once by the task that crawls it, so an entry is only
    ever touched by its own task and its children's tasks.
    """
    depth: int
    url: str
    content_type: str = UNKNOWN_CONTENT_TYPE
    error: Optional[BaseException] = None
    children: List[Optional['CrawlEntry']] = field(default_factory=list)

    @classmethod
    def with_slots(cls, depth: int, url: str, content_type: str = UNKNOWN_CONTENT_TYPE,
                   error: Optional[BaseException] = None, num_children: int = 0) -> 'CrawlEntry':
        """Create an entry with ``num_children`` empty child slots."""
        if error is not None:
            num_children = 0
        return cls(
            depth=depth,
            url=url,
            content_type=content_type,
            error=error,
            children=[None] * num_children
        )

    @property
    def ok(self) -> bool:
        return self.error is None

    def iter_entries(self) -> Iterator['CrawlEntry']:
        """Depth-first, pre-order walk that skips unfilled slots."""
        yield self
        for child in self.children:
            if child is not None:
                yield from child.iter_entries()

    def count(self) -> int:
        """Number of entries in this subtree."""
        return sum(1 for _ in self.iter_entries())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            'depth': self.depth,
            'url': self.url,
            'content_type': self.content_type,
            'error': str(self.error) if self.error is not None else None,
            'children': [child.to_dict() if child is not None else None for child in self.children]
        }

    def render(self) -> str:
        return render(self)

    def print_tree(self):
        print(render(self))


def render(entry: Optional[CrawlEntry]) -> str:
    """
    Render a tree as text.

    Each entry sits on its own line, indented by one tab per depth level.
    Failed entries show their error message in place of the URL.
    """
    if entry is None:
        return NIL_ENTRY_MESSAGE

    lines: List[str] = []
    _render_into(entry, lines)
    return "\n".join(lines)


def _render_into(entry: CrawlEntry, lines: List[str]):
    tabs = "\t" * entry.depth
    if entry.error is not None:
        lines.append(f"{tabs}{entry.error}")
        return

    lines.append(f"{tabs}{entry.url}")
    for child in entry.children:
        if child is not None:
            _render_into(child, lines)


class ResultWriter:
    """Writes finished result trees to JSON files."""

    def __init__(self, output_path: str):
        self.output_path = Path(output_path)
        self.logger = logging.getLogger(__name__)

    def write(self, entry: Optional[CrawlEntry], stats: Optional[Dict[str, Any]] = None) -> Path:
        """Serialize ``entry`` with optional run statistics."""
        data = {
            'stored_at': datetime.now(timezone.utc).isoformat(),
            'storage_version': '1.0',
            'stats': stats or {},
            'root': entry.to_dict() if entry is not None else None
        }

        try:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.output_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False, indent=2, default=str)
        except OSError as e:
            raise ResultWriteError(f"Failed to write results to {self.output_path}: {e}") from e

        self.logger.info(f"Wrote crawl results to {self.output_path}")
        return self.output_path
