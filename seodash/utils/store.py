"""
seodash/utils/store.py: table access for the hosted rows.
Every table lives in a MongoDB collection of the same name; when MongoDB is
unavailable the rows are kept in a process-local dict with the same semantics.

Queries are equality filters plus the operators $gte, $lte, $in and $ne.
"""
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from seodash.database import get_db

_mem: Dict[str, Dict[str, dict]] = defaultdict(dict)  # in-memory fallback


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _clean(doc: Optional[dict]) -> Optional[dict]:
    if doc and "_id" in doc:
        doc.pop("_id")
    return doc


def _match_value(value: Any, cond: Any) -> bool:
    if isinstance(cond, dict):
        for op, arg in cond.items():
            if op == "$gte":
                if value is None or value < arg:
                    return False
            elif op == "$lte":
                if value is None or value > arg:
                    return False
            elif op == "$in":
                if value not in arg:
                    return False
            elif op == "$ne":
                if value == arg:
                    return False
            else:
                raise ValueError(f"Unsupported query operator: {op}")
        return True
    return value == cond


def _matches(row: dict, query: Optional[dict]) -> bool:
    if not query:
        return True
    return all(_match_value(row.get(k), cond) for k, cond in query.items())


def reset_memory() -> None:
    _mem.clear()


async def insert(table: str, row: dict) -> dict:
    row = dict(row)
    row.setdefault("id", str(uuid.uuid4()))
    stamp = now_iso()
    row.setdefault("created_at", stamp)
    row.setdefault("updated_at", stamp)

    db = get_db()
    if db is not None:
        await db[table].insert_one(dict(row))
    else:
        _mem[table][row["id"]] = dict(row)
    return row


async def find(
    table: str,
    query: Optional[dict] = None,
    sort: Optional[str] = None,
    descending: bool = True,
    limit: int = 0,
) -> List[dict]:
    db = get_db()
    if db is not None:
        cursor = db[table].find(query or {}, {"_id": 0})
        if sort:
            cursor = cursor.sort(sort, -1 if descending else 1)
        if limit > 0:
            cursor = cursor.limit(limit)
        return [_clean(doc) async for doc in cursor]

    rows = [dict(r) for r in _mem[table].values() if _matches(r, query)]
    if sort:
        # nulls sort first ascending and last descending, as in Mongo
        present = sorted((r for r in rows if r.get(sort) is not None), key=lambda r: r[sort], reverse=descending)
        missing = [r for r in rows if r.get(sort) is None]
        rows = present + missing if descending else missing + present
    return rows[:limit] if limit > 0 else rows


async def find_one(table: str, query: dict) -> Optional[dict]:
    db = get_db()
    if db is not None:
        return _clean(await db[table].find_one(query, {"_id": 0}))
    for row in _mem[table].values():
        if _matches(row, query):
            return dict(row)
    return None


async def update(table: str, query: dict, values: dict) -> int:
    """Set `values` on every matching row; returns the number of rows matched."""
    values = dict(values)
    values["updated_at"] = now_iso()
    db = get_db()
    if db is not None:
        res = await db[table].update_many(query, {"$set": values})
        return res.matched_count
    matched = 0
    for row in _mem[table].values():
        if _matches(row, query):
            row.update(values)
            matched += 1
    return matched


async def upsert(table: str, query: dict, values: dict) -> dict:
    existing = await find_one(table, query)
    if existing:
        await update(table, {"id": existing["id"]}, values)
        existing.update(values)
        return existing
    return await insert(table, {**query, **values})


async def delete(table: str, query: dict) -> int:
    db = get_db()
    if db is not None:
        res = await db[table].delete_many(query)
        return res.deleted_count
    doomed = [rid for rid, row in _mem[table].items() if _matches(row, query)]
    for rid in doomed:
        del _mem[table][rid]
    return len(doomed)


async def count(table: str, query: Optional[dict] = None) -> int:
    db = get_db()
    if db is not None:
        return await db[table].count_documents(query or {})
    return sum(1 for r in _mem[table].values() if _matches(r, query))
