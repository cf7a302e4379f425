import logging
from typing import Optional, Tuple

from app.nl2sql.outcomes import Accepted, GuardDecision, GuardRejection, GuardRule

logger = logging.getLogger(__name__)

READ_ONLY_PREFIX = "SELECT"

# Checked in this order; the first hit is the one reported
FORBIDDEN_KEYWORDS = (
    "DROP",
    "DELETE",
    "TRUNCATE",
    "INSERT",
    "UPDATE",
    "ALTER",
    "CREATE",
    "EXEC",
    "EXECUTE",
)


class QueryGuard:
    """
    Static allow/deny check run before any query reaches the database.

    Known limitation: keywords are matched as plain substrings of the whole
    statement. A column such as "CreatedAt" is rejected because it contains
    CREATE, and anything obfuscated enough to dodge the substrings gets
    through. The executor never commits, which is the second line.
    """

    def __init__(
        self,
        prefix: str = READ_ONLY_PREFIX,
        forbidden: Tuple[str, ...] = FORBIDDEN_KEYWORDS,
    ):
        self.prefix = prefix.upper()
        self.forbidden = tuple(keyword.upper() for keyword in forbidden)

    def find_forbidden(self, normalized: str) -> Optional[str]:
        for keyword in self.forbidden:
            if keyword in normalized:
                return keyword
        return None

    def check(self, candidate: str) -> GuardDecision:
        normalized = candidate.strip().upper()
        keyword = self.find_forbidden(normalized)

        if not normalized.startswith(self.prefix):
            logger.warning(f"Guard rejected non-{self.prefix} statement: {candidate[:200]!r}")
            message = f"Only {self.prefix} queries are allowed for security reasons"
            if keyword:
                message += f" (found forbidden keyword: {keyword})"
            return GuardRejection(GuardRule.READ_ONLY_PREFIX, message, keyword=keyword)

        if keyword:
            logger.warning(f"Guard rejected statement containing {keyword}: {candidate[:200]!r}")
            return GuardRejection(
                GuardRule.FORBIDDEN_KEYWORD,
                f"Query contains forbidden keyword: {keyword}",
                keyword=keyword,
            )

        return Accepted(candidate.strip())
