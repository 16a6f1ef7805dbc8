"""Shared types used across the page_tracker package.

This module centralizes the records produced by an export run and the typed
dictionaries describing the KV API's JSON envelopes, so other modules can
import concrete types rather than passing unstructured dicts around.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, Set, Tuple, TypedDict


class ApiMessage(TypedDict, total=False):
    code: int
    message: str


class KeyEntry(TypedDict, total=False):
    name: str
    expiration: int
    metadata: Dict[str, object]


class ResultInfo(TypedDict, total=False):
    count: int
    cursor: str


class ListKeysPayload(TypedDict, total=False):
    """Envelope returned by the list keys endpoint.

    Fields are optional because error responses omit ``result``.
    """
    success: bool
    errors: List[ApiMessage]
    messages: List[ApiMessage]
    result: List[KeyEntry]
    result_info: ResultInfo


@dataclass(frozen=True)
class KeyRecord:
    """One page path and its view count."""
    key: str
    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError(f"View count for {self.key!r} must be non-negative, got {self.value}")


@dataclass
class ExportBatch:
    """Ordered set of records collected during one export run.

    Records keep the order in which their keys were listed. A key can only
    be added once; later duplicates are ignored. ``skipped`` lists the keys
    that were listed but left out of the export.
    """
    records: List[KeyRecord] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    _seen: Set[str] = field(default_factory=set, init=False, repr=False)

    def __post_init__(self) -> None:
        initial, self.records = self.records, []
        for record in initial:
            self.add(record)

    def add(self, record: KeyRecord) -> bool:
        """Append a record unless its key is already present.

        Returns:
            True if the record was appended, False if it was a duplicate
        """
        if record.key in self._seen:
            return False
        self._seen.add(record.key)
        self.records.append(record)
        return True

    def __contains__(self, key: object) -> bool:
        return key in self._seen

    def __iter__(self) -> Iterator[KeyRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def keys(self) -> List[str]:
        return [record.key for record in self.records]


@dataclass(frozen=True)
class ExportResult:
    """Outcome of a completed export."""
    output_path: Path
    row_count: int
    generated_at: datetime
    skipped: Tuple[str, ...] = ()
