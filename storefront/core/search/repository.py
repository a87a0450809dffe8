from __future__ import annotations

import copy
import json
import logging
import re
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from storefront.core.observability.metrics import inc_named, SEARCHES_TOTAL
from storefront.core.search.criteria import (
    NEXT_PAGES_LOOKAHEAD,
    ContainsFilter,
    EqualsAnyFilter,
    EqualsFilter,
    Filter,
    NotFilter,
    QueryDescriptor,
    RangeFilter,
    SearchResult,
    SortDirection,
    TotalCountMode,
)

log = logging.getLogger("storefront.search")

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")

_MISSING = object()


def _attr_name(segment: str) -> str:
    return _CAMEL_RE.sub("_", segment).lower()


def resolve_field(record: Any, path: str, *, entity: Optional[str] = None) -> Any:
    """
    Resolve a dotted field path against a record.

    Paths may carry the entity name as prefix ("order.orderCustomer.customerId")
    and use camelCase segments; both dict keys and attributes are looked up,
    camelCase segments fall back to their snake_case spelling.
    """
    parts = path.split(".")
    if entity and parts and parts[0] == entity:
        parts = parts[1:]

    cur = record
    for seg in parts:
        if cur is None:
            return None
        nxt = _MISSING
        for name in (seg, _attr_name(seg)):
            if isinstance(cur, dict):
                if name in cur:
                    nxt = cur[name]
                    break
            elif hasattr(cur, name):
                nxt = getattr(cur, name)
                break
        if nxt is _MISSING:
            raise KeyError(f"Unknown field '{seg}' in path '{path}'")
        cur = nxt
    return cur


def _matches(record: Any, f: Filter, entity: str) -> bool:
    if isinstance(f, NotFilter):
        return not _matches(record, f.inner, entity)

    value = resolve_field(record, f.field, entity=entity)

    if isinstance(f, EqualsFilter):
        return value == f.value
    if isinstance(f, EqualsAnyFilter):
        return value in f.values
    if isinstance(f, ContainsFilter):
        return value is not None and str(f.value).lower() in str(value).lower()
    if isinstance(f, RangeFilter):
        if value is None:
            return False
        if f.gte is not None and not value >= f.gte:
            return False
        if f.gt is not None and not value > f.gt:
            return False
        if f.lte is not None and not value <= f.lte:
            return False
        if f.lt is not None and not value < f.lt:
            return False
        return True

    raise TypeError(f"Unsupported filter: {type(f).__name__}")


class EntityRepository:
    """
    Thread-safe in-memory entity repository that executes QueryDescriptors.

    Records are dataclasses with an ``id`` attribute and a ``to_dict`` method.
    With ``path`` set, the store is persisted as JSON after every write and
    loaded with ``decode`` on start.
    """

    def __init__(
        self,
        entity: str,
        *,
        decode: Optional[Callable[[Dict[str, Any]], Any]] = None,
        path: Optional[Path] = None,
    ):
        self.entity = entity
        self._decode = decode
        self._path = path
        self._lock = threading.Lock()
        self._records: Dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        if self._path is None or self._decode is None or not self._path.exists():
            return
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except Exception as e:
            log.warning("ignoring unreadable %s store path=%s err=%s", self.entity, self._path, e)
            return
        records = raw.get("records") if isinstance(raw, dict) else None
        if not isinstance(records, dict):
            return
        for rid, obj in records.items():
            self._records[str(rid)] = self._decode(obj)

    def _save(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        obj = {
            "kind": f"{self.entity}_store",
            "records": {k: v.to_dict() for k, v in self._records.items()},
        }
        self._path.write_text(json.dumps(obj, indent=2, sort_keys=True), encoding="utf-8")

    def get(self, record_id: str) -> Optional[Any]:
        with self._lock:
            rec = self._records.get(record_id)
            return copy.deepcopy(rec) if rec is not None else None

    def upsert(self, record: Any) -> None:
        with self._lock:
            self._records[record.id] = copy.deepcopy(record)
            self._save()

    def upsert_many(self, records: Iterable[Any]) -> None:
        with self._lock:
            for record in records:
                self._records[record.id] = copy.deepcopy(record)
            self._save()

    def delete(self, record_id: str) -> bool:
        with self._lock:
            removed = self._records.pop(record_id, None) is not None
            if removed:
                self._save()
            return removed

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
            self._save()

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def search(self, descriptor: QueryDescriptor) -> SearchResult:
        with self._lock:
            snapshot: List[Any] = list(self._records.values())

        matched = [r for r in snapshot if all(_matches(r, f, self.entity) for f in descriptor.filters)]

        # Stable sort: apply the least significant sorting first.
        for sorting in reversed(descriptor.sortings):
            present = [r for r in matched if resolve_field(r, sorting.field, entity=self.entity) is not None]
            absent = [r for r in matched if resolve_field(r, sorting.field, entity=self.entity) is None]
            present.sort(
                key=lambda r: resolve_field(r, sorting.field, entity=self.entity),
                reverse=sorting.direction == SortDirection.DESC,
            )
            matched = present + absent

        offset = descriptor.offset
        if descriptor.limit is None:
            page = matched[offset:]
        else:
            page = matched[offset : offset + descriptor.limit]

        mode = descriptor.total_count_mode
        if mode == TotalCountMode.EXACT:
            total = len(matched)
        elif mode == TotalCountMode.NEXT_PAGES and descriptor.limit is not None:
            window = descriptor.limit * NEXT_PAGES_LOOKAHEAD + 1
            total = offset + len(matched[offset : offset + window])
        else:
            total = len(page)

        SEARCHES_TOTAL.labels(entity=self.entity, total_count_mode=mode.value).inc()
        inc_named(f"search_{self.entity}")
        log.debug(
            "search entity=%s filters=%d limit=%s offset=%d total=%d",
            self.entity,
            len(descriptor.filters),
            descriptor.limit,
            offset,
            total,
        )

        return SearchResult(
            descriptor=descriptor,
            elements={r.id: copy.deepcopy(r) for r in page},
            total=total,
        )
