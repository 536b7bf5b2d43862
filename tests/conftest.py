import pytest

from sqlambda import BaseProvider, DbContext, SqliteDialect, SqlserverDialect, disconnect


class RecordingProvider(BaseProvider):
    """Provider returning canned rows and remembering what it was asked to run."""

    def __init__(self, rows=None):
        self.rows = list(rows or [])
        self.calls = []

    async def query(self, sql, parameters):
        self.calls.append(("query", sql, dict(parameters)))
        return list(self.rows)

    async def execute_ir(self, ir, parameters):
        self.calls.append(("execute_ir", ir, dict(parameters)))
        return len(self.rows)


@pytest.fixture
def db():
    """Context rendering bare identifiers, so expected SQL stays readable."""
    return DbContext(dialect=SqliteDialect(quote_identifiers=False))


@pytest.fixture
def mssql():
    """SQL Server context with bracket-quoted identifiers."""
    return DbContext(dialect=SqlserverDialect())


@pytest.fixture
def provider(db):
    """RecordingProvider installed on the ``db`` context; set ``provider.rows`` first."""
    recording = RecordingProvider()
    db.provider = recording
    return recording


@pytest.fixture(autouse=True)
def forget_connections():
    """Named connections are module state; drop them after every test."""
    yield
    disconnect()
