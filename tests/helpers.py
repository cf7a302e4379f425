from app.core.seed import SAMPLE_ORDERS
from app.nl2sql.outcomes import CandidateQuery

# Sample orders plus one row without city/category (see conftest.store_path)
SEEDED_ROW_COUNT = len(SAMPLE_ORDERS) + 1

# SQLite flavour of the "orders in the last 7 days" query
LAST_7_DAYS_SQL = (
    "SELECT COUNT(*) AS OrderCount FROM Orders "
    "WHERE OrderDate >= datetime('now', 'localtime', '-7 days')"
)


class FakeGenerator:
    """Stands in for the completion backend; returns a canned outcome."""

    def __init__(self, outcome):
        self.outcome = outcome
        self.prompts = []

    async def generate(self, prompt):
        self.prompts.append(prompt)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def fake_sql(sql: str) -> FakeGenerator:
    return FakeGenerator(CandidateQuery(sql))
