from dataclasses import dataclass
from typing import Dict, List, Tuple

from app.nl2sql.schema import EntityDescriptor


RULES = (
    "Generate ONLY SELECT queries (no INSERT, UPDATE, DELETE, DROP, etc.)",
    "Use proper SQL Server syntax and functions",
    "For date calculations, use DATEADD and GETDATE()",
    "Return ONLY the SQL query - no explanations, no markdown, no code blocks",
    "Use appropriate aggregations (COUNT, SUM, AVG) when asked for totals or averages",
    "Use WHERE clauses for filtering",
    "Use GROUP BY for categorical analysis",
    "Use ORDER BY for sorting results",
    "Always use TOP when limiting results (e.g., TOP 5, TOP 10)",
)

# (question, sql) pairs shown to the model as few-shot examples
EXAMPLES = (
    (
        "How many orders in the last 7 days?",
        "SELECT COUNT(*) AS OrderCount FROM Orders WHERE OrderDate >= DATEADD(day, -7, GETDATE())",
    ),
    (
        "What is the total sales amount?",
        "SELECT SUM(TotalAmount) AS TotalSales FROM Orders",
    ),
    (
        "Show me pending orders",
        "SELECT OrderID, CustomerName, OrderDate, TotalAmount FROM Orders "
        "WHERE Status = 'Pending' ORDER BY OrderDate DESC",
    ),
    (
        "Top 5 customers by spending",
        "SELECT TOP 5 CustomerName, SUM(TotalAmount) AS TotalSpent, COUNT(*) AS OrderCount "
        "FROM Orders GROUP BY CustomerName ORDER BY TotalSpent DESC",
    ),
    (
        "Average order value for completed orders",
        "SELECT AVG(TotalAmount) AS AverageOrderValue FROM Orders WHERE Status = 'Completed'",
    ),
    (
        "Orders by category",
        "SELECT ProductCategory, COUNT(*) AS OrderCount, SUM(TotalAmount) AS TotalAmount "
        "FROM Orders GROUP BY ProductCategory ORDER BY TotalAmount DESC",
    ),
)


@dataclass(frozen=True)
class Prompt:
    """System instructions plus the user's question, kept as separate turns."""

    system: str
    question: str

    def to_messages(self) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.question},
        ]


def build_system_prompt(
    schema: EntityDescriptor,
    rules: Tuple[str, ...] = RULES,
    examples: Tuple[Tuple[str, str], ...] = EXAMPLES,
) -> str:
    parts = [
        "You are an expert SQL query generator for SQL Server. "
        "Your job is to convert natural language questions into valid SQL queries.",
        "",
        schema.render(),
        "",
        "CRITICAL RULES:",
    ]
    parts.extend(f"{number}. {rule}" for number, rule in enumerate(rules, start=1))
    parts.extend(["", "EXAMPLES:"])
    for question, sql in examples:
        parts.extend(["", f'Question: "{question}"', f"SQL: {sql}"])
    parts.extend(["", "Now convert this question to SQL:"])
    return "\n".join(parts)


def build_prompt(question: str, schema: EntityDescriptor) -> Prompt:
    """
    Combine the schema, rules and worked examples into the instruction block.
    Pure function: the question is passed through untouched as its own turn.
    """
    return Prompt(system=build_system_prompt(schema), question=question)
