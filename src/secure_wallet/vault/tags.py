"""Tag and favorite helpers for wallet items."""

from typing import Iterable, List, Set, Union

from .models import Record


def parse_tags(text: str) -> Set[str]:
    """Tags from a comma-separated string; blanks are dropped."""
    if not text:
        return set()
    return {tag.strip() for tag in text.split(",") if tag.strip()}


def format_tags(tags: Iterable[str]) -> str:
    return ", ".join(sorted(tags))


def _tags_of(record: Record) -> Set[str]:
    tags: Union[str, Set[str]] = record.tags
    return parse_tags(tags) if isinstance(tags, str) else set(tags)


def all_tags(records: Iterable[Record]) -> List[str]:
    """Every distinct tag across ``records``, sorted."""
    found: Set[str] = set()
    for record in records:
        found |= _tags_of(record)
    return sorted(found)


def filter_by_tag(records: Iterable[Record], tag: str) -> List[Record]:
    return [r for r in records if tag in _tags_of(r)]


def filter_favorites(records: Iterable[Record]) -> List[Record]:
    return [r for r in records if r.is_favorite]
