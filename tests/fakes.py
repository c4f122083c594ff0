"""In-memory stand-in for the supabase client used by the repository tests."""


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Just enough of the postgrest builder for the repository."""

    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self.bounds = None
        self.single = False

    def select(self, *_args, **_kwargs):
        return self

    def order(self, *_args, **_kwargs):
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def range(self, start, end):
        self.bounds = (start, end)
        return self

    def maybe_single(self):
        self.single = True
        return self

    def insert(self, payload):
        self.op, self.payload = "insert", payload
        return self

    def update(self, payload):
        self.op, self.payload = "update", payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    def execute(self):
        self.db.calls.append((self.table, self.op, self.bounds))
        if self.table in self.db.fail_on or (self.table, self.op) in self.db.fail_on:
            raise RuntimeError("connection reset")

        rows = self.db.tables.setdefault(self.table, [])
        if self.op == "insert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            created = []
            for item in payload:
                row = {"id": f"{self.table}-{len(rows) + 1}", **item}
                rows.append(row)
                created.append(row)
            return FakeResponse(created)

        matched = [r for r in rows if all(f(r) for f in self.filters)]
        if self.op == "update":
            for row in matched:
                row.update(self.payload)
            return FakeResponse(matched)
        if self.op == "delete":
            self.db.tables[self.table] = [r for r in rows if r not in matched]
            return FakeResponse(matched)

        if self.bounds:
            matched = matched[self.bounds[0]:self.bounds[1] + 1]
        if self.single:
            return FakeResponse(matched[0] if matched else None)
        return FakeResponse(matched)


class FakeClient:
    """`fail_on` holds table names, or (table, op) pairs to fail a single kind of call."""

    def __init__(self, tables=None, fail_on=()):
        self.tables = tables or {}
        self.fail_on = set(fail_on)
        self.calls = []

    def table(self, name):
        return FakeQuery(self, name)

