from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import TypeVar

RecordT = TypeVar("RecordT", bound=Mapping[str, object])


def normalize_search_query(raw_query: object) -> str:
    # Whitespace is part of the needle; only a missing query means "everything".
    return str(raw_query or "")


def record_matches_query(record: Mapping[str, object], query: str, fields: Iterable[str]) -> bool:
    needle = query.lower()
    for field_name in fields:
        haystack = str(record.get(field_name, "") or "").lower()
        if needle in haystack:
            return True
    return False


def filter_records(records: Sequence[RecordT], query: object, fields: Sequence[str]) -> list[RecordT]:
    """
    Linear case-insensitive substring filter over already-fetched rows.

    A record is kept when any of `fields` contains the query. An empty query keeps
    every record in its original order.
    """

    normalized_query = str(query or "")
    if not normalized_query:
        return list(records)

    return [record for record in records if record_matches_query(record, normalized_query, fields)]
