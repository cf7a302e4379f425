from dataclasses import dataclass
from typing import Optional, Tuple


# -----------------------------------------------------------------------------
# SCHEMA DESCRIPTOR
# Purpose: static description of the queryable table for the prompt.
# Never read from the database; it is fixed for the lifetime of the process.
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ColumnDescriptor:
    name: str
    sql_type: str
    nullable: bool
    note: Optional[str] = None
    key: Optional[str] = None  # e.g. "Primary Key, Auto-increment"

    def render(self) -> str:
        qualifiers = [self.sql_type]
        if self.key:
            qualifiers.append(self.key)
        else:
            qualifiers.append("NULL" if self.nullable else "NOT NULL")
        line = f"- {self.name} ({', '.join(qualifiers)})"
        if self.note:
            line += f" - {self.note}"
        return line


@dataclass(frozen=True)
class EntityDescriptor:
    name: str
    columns: Tuple[ColumnDescriptor, ...]
    sample_notes: Tuple[str, ...] = ()

    @property
    def column_names(self) -> Tuple[str, ...]:
        return tuple(column.name for column in self.columns)

    def render(self) -> str:
        """Render the block of text that gets embedded into the system prompt."""
        lines = ["DATABASE SCHEMA:", "", f"Table: {self.name}", "Columns:"]
        lines.extend(column.render() for column in self.columns)
        if self.sample_notes:
            lines.extend(["", "Sample data available:"])
            lines.extend(f"- {note}" for note in self.sample_notes)
        return "\n".join(lines)


ORDERS_SCHEMA = EntityDescriptor(
    name="Orders",
    columns=(
        ColumnDescriptor(
            "OrderID", "int", nullable=False, key="Primary Key, Auto-increment"
        ),
        ColumnDescriptor(
            "CustomerName", "nvarchar(100)", nullable=False, note="Name of the customer"
        ),
        ColumnDescriptor(
            "OrderDate", "datetime", nullable=False, note="When the order was placed"
        ),
        ColumnDescriptor(
            "TotalAmount",
            "decimal(10,2)",
            nullable=False,
            note="Total order amount in dollars",
        ),
        ColumnDescriptor(
            "Status",
            "nvarchar(50)",
            nullable=False,
            note="Order status: 'Pending', 'Shipped', 'Completed'",
        ),
        ColumnDescriptor(
            "ShippingCity", "nvarchar(100)", nullable=True, note="City where order ships to"
        ),
        ColumnDescriptor(
            "ProductCategory",
            "nvarchar(50)",
            nullable=True,
            note="Category: 'Electronics', 'Clothing', 'Books', 'Sports', 'Home & Garden'",
        ),
    ),
    sample_notes=(
        "25 orders total",
        "Order dates range from 75 days ago to yesterday",
        "Statuses: Completed, Pending, Shipped",
        "Various cities and product categories",
    ),
)
