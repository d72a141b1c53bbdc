"""
Store adapters for Networking Engine.

Every table is reached through the same small query interface:

    select(table, filters, order_by, descending) -> list of row dicts
    insert(table, row) -> inserted row dict
    update(table, filters, patch)
    delete(table, filters)
    current_user() -> {'id': ...} or None

Filters are equality maps; a None value means IS NULL. Every call is
scoped to the store's user (tenant), so callers never pass user_id.

SQLiteStore keeps a local database (dev, tests, offline use).
RestStore talks to a PostgREST-style hosted backend over HTTP.
"""

import json
import logging
import os
import sqlite3
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

import requests

import config

logger = logging.getLogger(__name__)

TABLES = ('contacts', 'companies', 'interactions', 'follow_ups',
          'daily_tasks', 'streaks', 'strength_snapshots')

# Columns holding lists; stored as JSON text in SQLite
JSON_COLUMNS = {'connector_influence_company_ids'}

SCHEMA = """
CREATE TABLE IF NOT EXISTS companies (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    industry TEXT,
    target_role TEXT,
    notes TEXT,
    priority INTEGER DEFAULT 0,
    is_archived INTEGER DEFAULT 0,
    archived_at TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS contacts (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    email TEXT,
    company TEXT,
    company_id TEXT REFERENCES companies(id),
    role TEXT,
    notes TEXT,
    linkedin_url TEXT,
    contact_type TEXT NOT NULL DEFAULT 'unspecified',
    warmth_level TEXT DEFAULT 'cold',
    last_contact_date TEXT,
    connector_influence_company_ids TEXT,
    recruiter_specialization TEXT,
    is_archived INTEGER DEFAULT 0,
    archived_at TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS interactions (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    contact_id TEXT NOT NULL REFERENCES contacts(id),
    interaction_date TEXT NOT NULL,
    interaction_type TEXT NOT NULL,
    notes TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS follow_ups (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    contact_id TEXT NOT NULL REFERENCES contacts(id),
    due_date TEXT NOT NULL,
    note TEXT,
    completed INTEGER DEFAULT 0,
    completed_at TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS daily_tasks (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    description TEXT NOT NULL,
    task_type TEXT NOT NULL,
    completed INTEGER DEFAULT 0,
    due_date TEXT,
    contact_id TEXT,
    company_id TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS streaks (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL UNIQUE,
    current_streak INTEGER DEFAULT 0,
    longest_streak INTEGER DEFAULT 0,
    total_tasks_completed INTEGER DEFAULT 0,
    last_activity_date TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS strength_snapshots (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    snapshot_date TEXT NOT NULL,
    network_strength INTEGER NOT NULL,
    created_at TEXT
);
"""


class StoreError(Exception):
    """A query against the store failed. The original error is __cause__."""


def new_id() -> str:
    return uuid.uuid4().hex


def now_iso() -> str:
    return datetime.now().isoformat(timespec='seconds')


class Store(ABC):
    """Generic relational query interface. Subclasses implement the five calls."""

    user_id: Optional[str] = None

    @abstractmethod
    def current_user(self) -> Optional[Dict]:
        ...

    @abstractmethod
    def select(self, table: str, filters: Optional[Dict] = None,
               order_by: Optional[str] = None, descending: bool = False) -> List[Dict]:
        ...

    @abstractmethod
    def insert(self, table: str, row: Dict) -> Dict:
        ...

    @abstractmethod
    def update(self, table: str, filters: Dict, patch: Dict) -> None:
        ...

    @abstractmethod
    def delete(self, table: str, filters: Dict) -> None:
        ...

    def select_one(self, table: str, filters: Dict) -> Optional[Dict]:
        rows = self.select(table, filters)
        return rows[0] if rows else None


def _check_table(table: str):
    if table not in TABLES:
        raise StoreError(f"Unknown table: {table}")


# ============================================================
# SQLITE
# ============================================================

def init_schema(conn: sqlite3.Connection):
    conn.executescript(SCHEMA)
    conn.commit()


class SQLiteStore(Store):
    """
    Store backed by a local SQLite database.

    One connection may be shared across threads (Streamlit sessions and cache
    refreshes), so every statement and its commit or rollback runs under a lock.
    """

    def __init__(self, db_path: str = ":memory:", user_id: Optional[str] = None,
                 conn: Optional[sqlite3.Connection] = None):
        self.db_path = db_path
        self.user_id = user_id
        if conn is None:
            conn = sqlite3.connect(db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        self.conn = conn
        self._columns = {}
        self._lock = threading.RLock()
        with self._lock:
            init_schema(self.conn)

    def close(self):
        self.conn.close()

    def current_user(self) -> Optional[Dict]:
        if not self.user_id:
            return None
        return {'id': self.user_id}

    def _table_columns(self, table: str) -> set:
        if table not in self._columns:
            with self._lock:
                cur = self.conn.execute(f"PRAGMA table_info({table})")
                self._columns[table] = {r['name'] for r in cur.fetchall()}
        return self._columns[table]

    def _check_columns(self, table: str, names):
        unknown = set(names) - self._table_columns(table)
        if unknown:
            raise StoreError(f"Unknown column(s) for {table}: {sorted(unknown)}")

    def _where(self, table: str, filters: Optional[Dict]):
        filters = dict(filters or {})
        filters['user_id'] = self.user_id
        self._check_columns(table, filters)
        clauses, params = [], []
        for col, val in filters.items():
            if val is None:
                clauses.append(f"{col} IS NULL")
            else:
                clauses.append(f"{col} = ?")
                params.append(self._encode(col, val))
        return " AND ".join(clauses), params

    @staticmethod
    def _encode(col, val):
        if col in JSON_COLUMNS and val is not None:
            return json.dumps(list(val))
        if isinstance(val, bool):
            return int(val)
        return val

    @staticmethod
    def _decode(row: sqlite3.Row) -> Dict:
        d = dict(row)
        for col in JSON_COLUMNS:
            if d.get(col):
                d[col] = json.loads(d[col])
        return d

    def _run(self, sql: str, params=(), fetch: bool = False):
        with self._lock:
            try:
                cur = self.conn.execute(sql, params)
                rows = cur.fetchall() if fetch else None
                self.conn.commit()
                return rows
            except sqlite3.Error as e:
                self.conn.rollback()
                raise StoreError(str(e)) from e

    def select(self, table, filters=None, order_by=None, descending=False):
        _check_table(table)
        where, params = self._where(table, filters)
        sql = f"SELECT * FROM {table} WHERE {where}"
        if order_by:
            self._check_columns(table, [order_by])
            sql += f" ORDER BY {order_by} {'DESC' if descending else 'ASC'}, rowid ASC"
        else:
            sql += " ORDER BY rowid ASC"
        return [self._decode(r) for r in self._run(sql, params, fetch=True)]

    def insert(self, table, row):
        _check_table(table)
        row = dict(row)
        row.setdefault('id', new_id())
        row.setdefault('created_at', now_iso())
        row['user_id'] = self.user_id
        self._check_columns(table, row)
        cols = list(row.keys())
        placeholders = ", ".join("?" * len(cols))
        self._run(f"INSERT INTO {table} ({', '.join(cols)}) VALUES ({placeholders})",
                  [self._encode(c, row[c]) for c in cols])
        return self.select_one(table, {'id': row['id']})

    def update(self, table, filters, patch):
        _check_table(table)
        if not patch:
            return
        self._check_columns(table, patch)
        where, params = self._where(table, filters)
        sets = ", ".join(f"{col} = ?" for col in patch)
        values = [self._encode(c, v) for c, v in patch.items()]
        self._run(f"UPDATE {table} SET {sets} WHERE {where}", values + params)

    def delete(self, table, filters):
        _check_table(table)
        where, params = self._where(table, filters)
        self._run(f"DELETE FROM {table} WHERE {where}", params)


# ============================================================
# HOSTED BACKEND (PostgREST over HTTP)
# ============================================================

class RestStore(Store):
    """
    Store backed by a hosted PostgREST endpoint.

    Row-level security on the backend scopes rows to the session; user_id
    filters are still sent so a service key cannot leak other tenants.
    """

    def __init__(self, base_url: str, api_key: str, user_id: Optional[str] = None,
                 access_token: Optional[str] = None, session=None, timeout: float = 15):
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.user_id = user_id
        self.access_token = access_token
        self.session = session or requests.Session()
        self.timeout = timeout

    def _headers(self, extra=None):
        headers = {
            'apikey': self.api_key,
            'Authorization': f"Bearer {self.access_token or self.api_key}",
            'Content-Type': 'application/json',
        }
        if extra:
            headers.update(extra)
        return headers

    @staticmethod
    def _filter_value(val) -> str:
        if val is None:
            return "is.null"
        if isinstance(val, bool):
            return f"eq.{str(val).lower()}"
        return f"eq.{val}"

    def _params(self, filters):
        filters = dict(filters or {})
        filters['user_id'] = self.user_id
        return {col: self._filter_value(val) for col, val in filters.items()}

    def _request(self, method, table, params=None, body=None, headers=None):
        _check_table(table)
        url = f"{self.base_url}/rest/v1/{table}"
        try:
            resp = self.session.request(method, url, params=params, json=body,
                                        headers=self._headers(headers), timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise StoreError(f"{method} {table} failed: {e}") from e
        if resp.content:
            return resp.json()
        return None

    def current_user(self):
        if self.user_id:
            return {'id': self.user_id}
        if not self.access_token:
            return None
        try:
            resp = self.session.get(f"{self.base_url}/auth/v1/user",
                                    headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Session lookup failed: {e}")
            return None
        if resp.status_code != 200:
            return None
        user = resp.json()
        self.user_id = user.get('id')
        return {'id': self.user_id} if self.user_id else None

    def select(self, table, filters=None, order_by=None, descending=False):
        params = self._params(filters)
        params['select'] = '*'
        if order_by:
            params['order'] = f"{order_by}.{'desc' if descending else 'asc'}"
        return self._request('GET', table, params=params) or []

    def insert(self, table, row):
        row = dict(row)
        row['user_id'] = self.user_id
        rows = self._request('POST', table, body=row,
                             headers={'Prefer': 'return=representation'})
        return rows[0] if rows else row

    def update(self, table, filters, patch):
        if not patch:
            return
        self._request('PATCH', table, params=self._params(filters), body=patch)

    def delete(self, table, filters):
        self._request('DELETE', table, params=self._params(filters))


def open_store(db_path: Optional[str] = None, user_id: Optional[str] = None) -> Store:
    """Open the configured store: hosted backend when NE_BACKEND_URL is set, else SQLite."""
    backend = config.get_backend()
    user_id = user_id or backend['user_id'] or None
    if backend['url'] and db_path is None:
        logger.info(f"Using hosted backend at {backend['url']}")
        return RestStore(backend['url'], backend['api_key'], user_id=user_id)

    db_path = db_path or config.get_db_path()
    if db_path != ":memory:":
        os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)
    logger.info(f"Using SQLite store at {db_path}")
    return SQLiteStore(db_path, user_id=user_id)
