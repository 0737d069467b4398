"""
Test doubles shared by the test modules.

FakeSupabase implements the slice of the supabase-py fluent query API the
stores use (select/insert/update/delete, eq/in_/gte/lte, order, limit,
execute) over in-memory lists. FakeGenaiClient stands in for
`google.genai.Client` and replays canned responses.
"""
import copy
import unittest
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

from fastapi.testclient import TestClient
from postgrest.exceptions import APIError

from nutriplan.core.security import get_current_user
from nutriplan.main import app
from nutriplan.services.ai_gateway import LLMGateway, get_llm_gateway
from nutriplan.services.supabase_client import get_supabase


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.columns = "*"
        self.payload = None
        self.filters = []
        self.orders = []
        self.row_limit = None

    def select(self, columns="*"):
        self.op = "select"
        self.columns = columns
        return self

    def insert(self, payload):
        self.op = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.op = "update"
        self.payload = payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def gte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row[column] >= value)
        return self

    def lte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row[column] <= value)
        return self

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def limit(self, count):
        self.row_limit = count
        return self

    def _matches(self, row):
        return all(check(row) for check in self.filters)

    def _project(self, row):
        if self.columns.strip() == "*":
            return copy.deepcopy(row)
        names = [name.strip() for name in self.columns.split(",")]
        return {name: copy.deepcopy(row.get(name)) for name in names}

    def execute(self):
        self.db.check_failure(self.table, self.op)
        rows = self.db.tables.setdefault(self.table, [])

        if self.op == "insert":
            records = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for record in records:
                row = copy.deepcopy(record)
                row.setdefault("id", str(uuid.uuid4()))
                row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return SimpleNamespace(data=inserted)

        if self.op == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(copy.deepcopy(self.payload))
                    updated.append(copy.deepcopy(row))
            return SimpleNamespace(data=updated)

        if self.op == "delete":
            deleted = [row for row in rows if self._matches(row)]
            self.db.tables[self.table] = [row for row in rows if not self._matches(row)]
            return SimpleNamespace(data=deleted)

        selected = [row for row in rows if self._matches(row)]
        for column, desc in reversed(self.orders):
            selected.sort(key=lambda row: (row.get(column) is None, "" if row.get(column) is None else row.get(column)), reverse=desc)
        if self.row_limit is not None:
            selected = selected[:self.row_limit]
        return SimpleNamespace(data=[self._project(row) for row in selected])


class FakeAuth:
    def __init__(self):
        self.signups = []

    def sign_up(self, credentials):
        self.signups.append(credentials)
        return SimpleNamespace(user=SimpleNamespace(id=str(uuid.uuid4()), email=credentials["email"]))

    def sign_in_with_password(self, credentials):
        return SimpleNamespace(session=SimpleNamespace(access_token=f"token-for-{credentials['email']}"))


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.failures = set()
        self.auth = FakeAuth()

    def table(self, name):
        return FakeQuery(self, name)

    def fail(self, table, op):
        """Make every later `op` on `table` raise a PostgREST APIError."""
        self.failures.add((table, op))

    def check_failure(self, table, op):
        if (table, op) in self.failures:
            raise APIError({"message": f"{op} on {table} failed", "code": "500", "hint": None, "details": None})

    def rows(self, table):
        return self.tables.get(table, [])

    def seed(self, table, **row):
        return self.table(table).insert(row).execute().data[0]


class FakeModels:
    def __init__(self, owner):
        self.owner = owner

    def generate_content(self, model, contents, config=None):
        self.owner.calls.append({"model": model, "contents": contents, "config": config})
        if not self.owner.responses:
            raise AssertionError("FakeGenaiClient has no response queued")
        response = self.owner.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeGenaiClient:
    def __init__(self):
        self.calls = []
        self.responses = []
        self.models = FakeModels(self)

    def reply_text(self, text):
        self.responses.append(SimpleNamespace(text=text, function_calls=None))

    def reply_call(self, name, args):
        call = SimpleNamespace(name=name, args=args)
        self.responses.append(SimpleNamespace(text=None, function_calls=[call]))

    def reply_error(self, error):
        self.responses.append(error)


def seed_profile(db, user_id, **overrides):
    profile = {
        "user_id": user_id,
        "name": "Test User",
        "age": 30,
        "gender": "male",
        "weight": 80.0,
        "height": 180.0,
        "activity_level": "moderate",
        "work_type": "office",
        "goal": "lose",
        "diet_type": None,
        "restrictions": [],
        "tdee": 2914,
        "target_calories": 2477,
        "target_protein": 186,
        "target_carbs": 248,
        "target_fats": 83,
    }
    profile.update(overrides)
    return db.seed("profiles", **profile)


class ApiTestCase(unittest.TestCase):
    """Runs the real app against FakeSupabase, a fake LLM and a logged-in user."""

    user_id = "user-1"

    def setUp(self):
        self.db = FakeSupabase()
        self.genai = FakeGenaiClient()
        self.gateway = LLMGateway(client=self.genai, model="test-model", temperature=0)
        self.user = SimpleNamespace(id=self.user_id, email="user@example.com")

        app.dependency_overrides[get_supabase] = lambda: self.db
        app.dependency_overrides[get_current_user] = lambda: self.user
        app.dependency_overrides[get_llm_gateway] = lambda: self.gateway
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()
        self.client.close()

    def login_as(self, user_id):
        self.user = SimpleNamespace(id=user_id, email=f"{user_id}@example.com")
