# tests/fakesupabase.py
"""In-memory stand-in for the async Supabase client used by the auth feature."""

import json
import uuid
from datetime import datetime, timezone

import httpx
from postgrest.exceptions import APIError


class FakeResult:
    def __init__(self, data):
        self.data = data
        self.count = len(data)


class FakeQuery:
    def __init__(self, db, table):
        self._db = db
        self._table = table
        self._filters = []
        self._limit = None
        self._insert = None

    def select(self, *args, **kwargs):
        return self

    def eq(self, field, value):
        self._filters.append(lambda r: r.get(field) == value)
        return self

    def limit(self, n):
        self._limit = n
        return self

    def insert(self, record):
        self._insert = dict(record)
        return self

    async def execute(self):
        if self._insert is not None:
            return FakeResult([self._db.insert_row(self._table, self._insert)])
        if self._table in self._db.select_errors:
            raise self._db.select_errors[self._table]
        rows = [row for row in self._db.tables.get(self._table, []) if all(f(row) for f in self._filters)]
        if self._limit is not None:
            rows = rows[: self._limit]
        return FakeResult(rows)


class FakeAdmin:
    def __init__(self, auth):
        self._auth = auth
        self.deleted = []
        self.error = None

    async def delete_user(self, user_id):
        if self.error is not None:
            raise self.error
        self.deleted.append(user_id)
        self._auth.identities = {e: i for e, i in self._auth.identities.items() if i != user_id}


class FakeAuth:
    """Supabase Auth: GoTrue's sign-up endpoint, the session reader and the admin API."""

    def __init__(self):
        self.identities = {}
        self.sign_up_requests = []
        # An exception to raise, or a (status, body) error response.
        self.sign_up_error = None
        self.return_user = True
        self.auto_confirm = True
        self.session = None
        self.admin = FakeAdmin(self)

    @property
    def sign_up_calls(self):
        return len(self.sign_up_requests)

    def handle_sign_up(self, request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/auth/v1/signup"
        self.sign_up_requests.append(request)
        if isinstance(self.sign_up_error, Exception):
            raise self.sign_up_error
        if self.sign_up_error is not None:
            status, body = self.sign_up_error
            return httpx.Response(status, json=body)
        email = json.loads(request.content)["email"]
        if email in self.identities:
            return httpx.Response(
                422,
                json={"code": 422, "error_code": "user_already_exists", "msg": "User already registered"},
            )
        if not self.return_user:
            return httpx.Response(200, json={})
        user_id = str(uuid.uuid4())
        self.identities[email] = user_id
        user = {"id": user_id, "email": email, "aud": "authenticated", "role": "authenticated"}
        if not self.auto_confirm:
            return httpx.Response(200, json=user)
        return httpx.Response(
            200,
            json={
                "access_token": f"token-of-{email}",
                "token_type": "bearer",
                "expires_in": 3600,
                "refresh_token": f"refresh-of-{email}",
                "user": user,
            },
        )

    async def get_session(self):
        return self.session


class FakeSupabase:
    UNIQUE = {"users": ("id", "email"), "terms_agreements": ("user_id",)}

    def __init__(self):
        self.tables = {"users": [], "terms_agreements": []}
        self.insert_errors = {}
        self.select_errors = {}
        self.auth = FakeAuth()

    def table(self, name: str):
        return FakeQuery(self, name)

    def insert_row(self, table, record):
        if table in self.insert_errors:
            raise self.insert_errors[table]
        rows = self.tables.setdefault(table, [])
        for column in self.UNIQUE.get(table, ()):
            if column in record and any(r.get(column) == record[column] for r in rows):
                raise APIError({
                    "message": f'duplicate key value violates unique constraint "{table}_{column}_key"',
                    "code": "23505",
                    "hint": None,
                    "details": None,
                })
        now = datetime.now(timezone.utc).isoformat()
        row = {"id": str(uuid.uuid4()), **record}
        if table == "users":
            row.setdefault("created_at", now)
            row.setdefault("updated_at", now)
        if table == "terms_agreements":
            row.setdefault("agreed_at", now)
        rows.append(row)
        return row
