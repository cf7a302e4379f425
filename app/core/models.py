from sqlalchemy import Column, DateTime, Integer, Numeric, Unicode
from sqlalchemy.sql import func

from app.core.database import Base


# =========================
# Order (the only queryable entity)
# =========================
class Order(Base):
    """
    Mirrors the Orders table the question pipeline reads from.
    The column names are PascalCase because the generated SQL uses them verbatim.
    """

    __tablename__ = "Orders"

    OrderID = Column(Integer, primary_key=True, autoincrement=True)

    CustomerName = Column(Unicode(100), nullable=False)
    OrderDate = Column(DateTime, nullable=False, server_default=func.now())
    TotalAmount = Column(Numeric(10, 2), nullable=False)
    Status = Column(Unicode(50), nullable=False)  # Pending / Shipped / Completed

    ShippingCity = Column(Unicode(100), nullable=True)
    ProductCategory = Column(Unicode(50), nullable=True)
