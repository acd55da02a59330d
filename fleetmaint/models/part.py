# fleetmaint/models/part.py
from sqlalchemy import String, Numeric, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from decimal import Decimal
from fleetmaint.db.base import Base
from fleetmaint.models.mixins.base_tenant_item import BaseTenantItemMixin

class Part(Base, BaseTenantItemMixin):
    """
    Inventory item (spare part) available to service orders.
    Stock quantity is the source of truth for availability.
    """

    __tablename__ = "parts"
    __table_args__ = (
        UniqueConstraint("tenant_id", "sku", name="uq_parts_tenant_sku"),
    )

    # =========
    # 🔤 Identification
    # =========
    sku :Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Stock keeping unit, unique per tenant",
    )

    name :Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Part display name",
    )

    # =========
    # 🔢 Stock & pricing
    # =========
    quantity :Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Current stock quantity",
    )

    unit_cost :Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Current unit cost (not used for historical usage rows)",
    )

    min_stock :Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Low stock threshold",
    )

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_stock

    def __repr__(self) -> str:
        return f"<Part id={self.id} sku={self.sku} quantity={self.quantity}>"
