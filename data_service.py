"""
data_service.py
---------------
Load the three library datasets (branches, annual visits, events) from the
JSON documents bundled under datasets/.

Data assumptions
- Each document is a JSON array of objects.
- Field names are listed in models.py; optional fields may be absent or null.

Usage
-----
from data_service import BundledDataService

service = BundledDataService()
result = service.load_branches()
if result.ok:
    print(len(result.value), "branches")
else:
    print("Could not load branches:", result.error)

Every load returns a LoadResult instead of raising, so the caller can surface
each dataset's failure independently. No caching: every call re-reads the
document.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Generic, List, Optional, Protocol, Tuple, TypeVar

from config import LibraryConfig, get_config
from models import Branch, Event, RecordError, VisitRecord

logger = logging.getLogger(__name__)

__all__ = [
    "BRANCHES",
    "VISITS",
    "EVENTS",
    "LoadError",
    "ResourceNotFound",
    "ResourceUnreadable",
    "DecodingFailed",
    "LoadResult",
    "DataServiceProtocol",
    "BundledDataService",
    "StaticDataService",
    "decode_collection",
]

BRANCHES = "branches"
VISITS = "visits"
EVENTS = "events"

T = TypeVar("T")


# -------------------------
# Errors
# -------------------------

class LoadError(Exception):
    """Base class for dataset load failures. ``dataset`` names the collection."""

    def __init__(self, dataset: str, message: str):
        super().__init__(f"{dataset}: {message}")
        self.dataset = dataset


class ResourceNotFound(LoadError):
    """The named document is missing from the data directory."""

    def __init__(self, dataset: str, resource: str):
        super().__init__(dataset, f"resource not found: {resource}")
        self.resource = resource


class ResourceUnreadable(LoadError):
    """The document exists but could not be read (permissions, I/O)."""

    def __init__(self, dataset: str, resource: str, cause: OSError):
        super().__init__(dataset, f"cannot read {resource}: {cause}")
        self.resource = resource
        self.cause = cause


class DecodingFailed(LoadError):
    """The document does not match the expected schema."""

    def __init__(self, dataset: str, cause: Exception, index: Optional[int] = None):
        where = f" (record {index})" if index is not None else ""
        super().__init__(dataset, f"decoding failed{where}: {cause}")
        self.cause = cause
        self.index = index


@dataclass(frozen=True)
class LoadResult(Generic[T]):
    dataset: str
    value: Optional[List[T]] = None
    error: Optional[LoadError] = None
    # Per-record diagnostics, only filled when decoding is tolerant
    skipped: Tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> List[T]:
        if self.error is not None:
            raise self.error
        return list(self.value or [])


# -------------------------
# Decoding
# -------------------------

def decode_collection(
    dataset: str,
    raw: Any,
    decoder: Callable[[Dict[str, Any]], T],
    *,
    strict: bool = True,
) -> Tuple[List[T], List[str]]:
    """
    Turn a parsed JSON document into typed records.

    With ``strict`` a single bad record fails the whole collection. Otherwise
    bad records are dropped and described in the returned diagnostics list.

    Raises
    ------
    DecodingFailed
        If the top level is not an array, or (strict) any record is invalid.
    """
    if not isinstance(raw, list):
        raise DecodingFailed(dataset, TypeError(f"expected a JSON array, got {type(raw).__name__}"))

    records: List[T] = []
    skipped: List[str] = []
    for index, item in enumerate(raw):
        try:
            if not isinstance(item, dict):
                raise RecordError(f"expected an object, got {type(item).__name__}")
            records.append(decoder(item))
        except RecordError as exc:
            if strict:
                raise DecodingFailed(dataset, exc, index=index) from exc
            skipped.append(f"record {index}: {exc}")
    return records, skipped


class DataServiceProtocol(Protocol):
    def load_branches(self) -> LoadResult[Branch]: ...

    def load_visits(self) -> LoadResult[VisitRecord]: ...

    def load_events(self) -> LoadResult[Event]: ...


class _DocumentService(ABC):
    """Shared decode/report path; subclasses only supply the raw documents."""

    def __init__(self, *, strict: bool = True):
        self.strict = strict

    @abstractmethod
    def _document(self, dataset: str) -> Any:
        """Return the parsed JSON document or raise a LoadError."""

    def _load(self, dataset: str, decoder: Callable[[Dict[str, Any]], T]) -> LoadResult[T]:
        try:
            records, skipped = decode_collection(
                dataset, self._document(dataset), decoder, strict=self.strict
            )
        except LoadError as exc:
            logger.error("Failed to load %s: %s", dataset, exc)
            return LoadResult(dataset=dataset, error=exc)

        for message in skipped:
            logger.warning("Skipped %s %s", dataset, message)
        logger.info("Loaded %d %s records", len(records), dataset)
        return LoadResult(dataset=dataset, value=records, skipped=tuple(skipped))

    def load_branches(self) -> LoadResult[Branch]:
        return self._load(BRANCHES, Branch.from_record)

    def load_visits(self) -> LoadResult[VisitRecord]:
        return self._load(VISITS, VisitRecord.from_record)

    def load_events(self) -> LoadResult[Event]:
        return self._load(EVENTS, Event.from_record)


class BundledDataService(_DocumentService):
    """Reads the JSON documents from a data directory."""

    def __init__(self, config: Optional[LibraryConfig] = None, *, strict: Optional[bool] = None):
        self.config = config or get_config()
        super().__init__(strict=self.config.strict_decoding if strict is None else strict)
        self.resources = {
            BRANCHES: self.config.branches_resource,
            VISITS: self.config.visits_resource,
            EVENTS: self.config.events_resource,
        }

    def resource_path(self, dataset: str) -> Path:
        return self.config.resource_path(self.resources[dataset])

    def _document(self, dataset: str) -> Any:
        path = self.resource_path(dataset)
        if not path.is_file():
            raise ResourceNotFound(dataset, str(path))
        try:
            with path.open(encoding="utf-8-sig") as fh:
                return json.load(fh)
        # JSONDecodeError and UnicodeDecodeError are both ValueErrors;
        # RecursionError comes from pathologically nested arrays
        except (ValueError, RecursionError) as exc:
            raise DecodingFailed(dataset, exc) from exc
        except OSError as exc:
            raise ResourceUnreadable(dataset, str(path), exc) from exc


class StaticDataService(_DocumentService):
    """
    Serves in-memory documents (already-parsed JSON lists).

    A dataset left as None behaves like a missing resource; ``errors`` forces
    a specific failure for a dataset.
    """

    def __init__(
        self,
        branches: Optional[List[Any]] = None,
        visits: Optional[List[Any]] = None,
        events: Optional[List[Any]] = None,
        *,
        errors: Optional[Dict[str, LoadError]] = None,
        strict: bool = True,
    ):
        super().__init__(strict=strict)
        self.documents = {BRANCHES: branches, VISITS: visits, EVENTS: events}
        self.errors = dict(errors or {})

    def _document(self, dataset: str) -> Any:
        if dataset in self.errors:
            raise self.errors[dataset]
        document = self.documents.get(dataset)
        if document is None:
            raise ResourceNotFound(dataset, f"<memory:{dataset}>")
        return document


if __name__ == "__main__":
    # Simple smoke test against the bundled datasets
    logging.basicConfig(level=logging.INFO)
    service = BundledDataService()
    for load in (service.load_branches, service.load_visits, service.load_events):
        res = load()
        print(res.dataset, "ok" if res.ok else f"error: {res.error}", len(res.value or []))
