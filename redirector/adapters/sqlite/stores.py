"""SQLite store adapters.

Translate store conditions into parameterised WHERE clauses over a
whitelist of columns. Iteration order is insertion order (seq).
Every sqlite3 failure surfaces as StoreError.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any
from uuid import uuid4

from redirector.core.entities import HostConfig, RedirectRule, VersionConfig
from redirector.core.ports.store import (
    AnyOf,
    Comparator,
    Condition,
    ConflictError,
    Criterion,
    StoreError,
)

RULE_COLUMNS = {
    "id": "id",
    "path": "path",
    "host": "host",
    "version": "version",
    "redirect_url": "redirect_url",
    "status_code": "status_code",
    "utc_start_time": "utc_start_time",
    "utc_end_time": "utc_end_time",
    "operations": "operations",
    "regex": "regex",
    "last_accessed": "last_accessed",
}

HOST_COLUMNS = {"host": "host", "host_only": "host_only"}

VERSION_COLUMNS = {"active_version": "active_version"}


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _sql_value(value: Any) -> Any:
    if isinstance(value, bool):
        return int(value)
    return value


def _condition_sql(condition: Condition, columns: Mapping[str, str]) -> tuple[str, list[Any]]:
    column = columns.get(condition.attribute)
    if column is None:
        raise StoreError(f"Unknown attribute: {condition.attribute}")

    if condition.comparator is Comparator.EQUALS:
        if condition.value is None:
            return f"{column} IS NULL", []
        return f"{column} = ?", [_sql_value(condition.value)]
    if condition.comparator is Comparator.GREATER_THAN:
        return f"{column} > ?", [_sql_value(condition.value)]
    if condition.comparator is Comparator.BETWEEN:
        low, high = condition.value
        return f"{column} BETWEEN ? AND ?", [_sql_value(low), _sql_value(high)]
    raise StoreError(f"Unsupported comparator: {condition.comparator}")


def build_where(conditions: Sequence[Criterion], columns: Mapping[str, str]) -> tuple[str, list[Any]]:
    """Build ' WHERE ...' (or '') plus parameters. AnyOf groups become ORs."""
    clauses: list[str] = []
    params: list[Any] = []

    for criterion in conditions:
        if isinstance(criterion, AnyOf):
            if not criterion.conditions:
                clauses.append("0")
                continue
            parts = []
            for condition in criterion.conditions:
                sql, values = _condition_sql(condition, columns)
                parts.append(sql)
                params.extend(values)
            clauses.append("(" + " OR ".join(parts) + ")")
        else:
            sql, values = _condition_sql(criterion, columns)
            clauses.append(sql)
            params.extend(values)

    if not clauses:
        return "", params
    return " WHERE " + " AND ".join(clauses), params


class _SQLiteTable:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        return conn

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open database {self.db_path}: {e}") from e
        try:
            yield conn
            conn.commit()
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise ConflictError(str(e)) from e
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(str(e)) from e
        finally:
            conn.close()

    def _select(self, table: str, columns: Mapping[str, str], conditions: Sequence[Criterion]) -> Iterator[dict[str, Any]]:
        where, params = build_where(conditions, columns)
        with self._connection() as conn:
            rows = conn.execute(f"SELECT * FROM {table}{where} ORDER BY seq", params).fetchall()
        yield from rows


class SQLiteRuleStore(_SQLiteTable):
    def search(self, conditions: Sequence[Criterion]) -> Iterator[RedirectRule]:
        for row in self._select("rules", RULE_COLUMNS, conditions):
            yield self._map_row(row)

    def insert(self, rule: RedirectRule) -> RedirectRule:
        stored = rule.model_copy(update={"id": rule.id or str(uuid4())})
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO rules (
                    id, path, host, version, redirect_url, status_code,
                    utc_start_time, utc_end_time, operations, regex, last_accessed
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
                self._params(stored),
            )
        return stored

    def get(self, rule_id: str) -> RedirectRule | None:
        for rule in self.search([Condition("id", rule_id)]):
            return rule
        return None

    def update(self, rule: RedirectRule) -> RedirectRule:
        if rule.id is None:
            raise StoreError("Cannot update a rule without an id")
        with self._connection() as conn:
            cursor = conn.execute(
                """
                UPDATE rules SET
                    id = ?, path = ?, host = ?, version = ?, redirect_url = ?,
                    status_code = ?, utc_start_time = ?, utc_end_time = ?,
                    operations = ?, regex = ?, last_accessed = ?
                WHERE id = ?
            """,
                (*self._params(rule), rule.id),
            )
            if cursor.rowcount == 0:
                raise StoreError(f"Rule {rule.id} not found")
        return rule

    def patch(self, rule_id: str, fields: dict[str, Any]) -> None:
        if not fields:
            return
        unknown = set(fields) - set(RULE_COLUMNS)
        if unknown:
            raise StoreError(f"Unknown attributes: {', '.join(sorted(unknown))}")

        assignments = ", ".join(f"{RULE_COLUMNS[name]} = ?" for name in fields)
        values = [_sql_value(v) for v in fields.values()]
        with self._connection() as conn:
            conn.execute(f"UPDATE rules SET {assignments} WHERE id = ?", (*values, rule_id))

    def delete_all(self) -> int:
        with self._connection() as conn:
            return conn.execute("DELETE FROM rules").rowcount

    def count(self) -> int:
        with self._connection() as conn:
            row = conn.execute("SELECT COUNT(*) AS n FROM rules").fetchone()
        return int(row["n"])

    def _params(self, rule: RedirectRule) -> tuple[Any, ...]:
        return (
            rule.id,
            rule.path,
            rule.host,
            rule.version,
            rule.redirect_url,
            rule.status_code,
            rule.utc_start_time,
            rule.utc_end_time,
            rule.operations,
            int(rule.regex),
            rule.last_accessed,
        )

    def _map_row(self, row: dict[str, Any]) -> RedirectRule:
        return RedirectRule(
            id=row["id"],
            path=row["path"],
            host=row["host"],
            version=row["version"],
            redirect_url=row["redirect_url"],
            status_code=row["status_code"],
            utc_start_time=row["utc_start_time"],
            utc_end_time=row["utc_end_time"],
            operations=row["operations"],
            regex=bool(row["regex"]),
            last_accessed=row["last_accessed"],
        )


class SQLiteHostStore(_SQLiteTable):
    def search(self, conditions: Sequence[Criterion]) -> Iterator[HostConfig]:
        where, params = build_where(conditions, HOST_COLUMNS)
        with self._connection() as conn:
            rows = conn.execute(f"SELECT * FROM hosts{where} ORDER BY host", params).fetchall()
        for row in rows:
            yield HostConfig(host=row["host"], host_only=bool(row["host_only"]))

    def insert(self, config: HostConfig) -> HostConfig:
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO hosts (host, host_only) VALUES (?, ?)
                ON CONFLICT(host) DO UPDATE SET host_only=excluded.host_only
            """,
                (config.host, int(config.host_only)),
            )
        return config


class SQLiteVersionStore(_SQLiteTable):
    def search(self, conditions: Sequence[Criterion]) -> Iterator[VersionConfig]:
        for row in self._select("versions", VERSION_COLUMNS, conditions):
            yield VersionConfig(active_version=row["active_version"])

    def insert(self, config: VersionConfig) -> VersionConfig:
        with self._connection() as conn:
            conn.execute("INSERT INTO versions (active_version) VALUES (?)", (config.active_version,))
        return config

    def delete_all(self) -> int:
        with self._connection() as conn:
            return conn.execute("DELETE FROM versions").rowcount
