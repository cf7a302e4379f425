import logging
import re
from typing import Any, Dict, Optional

import httpx

from app.core.config import Settings
from app.nl2sql.outcomes import (
    CandidateQuery,
    GenerationError,
    GenerationFailure,
    GenerationOutcome,
)
from app.nl2sql.prompt import Prompt

logger = logging.getLogger(__name__)

# A fence with an optional language tag on its own line, or any bare fence
# SQL language tags go whatever follows them; any other tag only when it ends the line
CODE_FENCE_RE = re.compile(
    r"```(?:(?:t-?sql|mssql|sql)\b|[\w+-]*[ \t]*(?=\r?\n|$))?", re.IGNORECASE
)
SQL_LABEL_RE = re.compile(r"^SQL:\s*", re.IGNORECASE)


def clean_completion(raw: str) -> str:
    """
    Turn the model's raw answer into a bare SQL statement.

    Steps, in order:
        1. strip surrounding whitespace
        2. drop code fence markers (```sql and plain ```)
        3. drop a leading "SQL:" label

    Example:
        "```sql\\nSELECT 1\\n```"  ->  "SELECT 1"
        "SQL: SELECT 1"            ->  "SELECT 1"
    """
    text = raw.strip()
    text = CODE_FENCE_RE.sub("", text).strip()
    text = SQL_LABEL_RE.sub("", text, count=1).strip()
    return text


def extract_completion_text(data: Any) -> Optional[str]:
    """Pull choices[0].message.content out of a chat completions response."""
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    return content if isinstance(content, str) else None


class QueryGenerator:
    """
    Client for the completion backend (Azure OpenAI chat completions REST API).

    A single call per question: no retries. Any failure comes back as a
    GenerationError value.
    """

    def __init__(
        self,
        config: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        # Tests swap in httpx.MockTransport here
        self.transport = transport

    @property
    def url(self) -> str:
        endpoint = self.config.AZURE_OPENAI_ENDPOINT.rstrip("/")
        return (
            f"{endpoint}/openai/deployments/{self.config.AZURE_OPENAI_DEPLOYMENT}"
            "/chat/completions"
        )

    def build_payload(self, prompt: Prompt) -> Dict[str, Any]:
        return {
            "messages": prompt.to_messages(),
            "temperature": self.config.COMPLETION_TEMPERATURE,
            "top_p": self.config.COMPLETION_TOP_P,
            "max_tokens": self.config.COMPLETION_MAX_TOKENS,
        }

    async def request_completion(self, prompt: Prompt) -> Dict[str, Any]:
        async with httpx.AsyncClient(
            timeout=self.config.COMPLETION_TIMEOUT_SECONDS, transport=self.transport
        ) as client:
            response = await client.post(
                self.url,
                params={"api-version": self.config.AZURE_OPENAI_API_VERSION},
                headers={"api-key": self.config.AZURE_OPENAI_API_KEY},
                json=self.build_payload(prompt),
            )
            response.raise_for_status()
            return response.json()

    async def generate(self, prompt: Prompt) -> GenerationOutcome:
        try:
            data = await self.request_completion(prompt)
        except httpx.HTTPStatusError as error:
            logger.error(f"Completion backend returned {error.response.status_code}: {error}")
            return GenerationError(
                GenerationFailure.HTTP_STATUS,
                f"The SQL generation service returned status {error.response.status_code}",
            )
        except httpx.HTTPError as error:
            logger.error(f"Completion backend unreachable: {error!r}")
            return GenerationError(
                GenerationFailure.UNAVAILABLE, "The SQL generation service is unavailable"
            )
        except ValueError as error:
            # response.json() on a non-JSON body
            logger.error(f"Completion backend sent a non-JSON body: {error}")
            return GenerationError(
                GenerationFailure.MALFORMED,
                "The SQL generation service returned a malformed response",
            )

        raw = extract_completion_text(data)
        if raw is None:
            logger.error(f"Completion response had no message content: {data!r}")
            return GenerationError(
                GenerationFailure.MALFORMED,
                "The SQL generation service returned a malformed response",
            )

        sql = clean_completion(raw)
        if not sql:
            return GenerationError(
                GenerationFailure.EMPTY, "The SQL generation service returned no query"
            )
        return CandidateQuery(sql)
