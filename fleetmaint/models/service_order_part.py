# fleetmaint/models/service_order_part.py
from decimal import Decimal
from sqlalchemy import String, Integer, Numeric, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from fleetmaint.db.base import Base
from fleetmaint.models.mixins.base_tenant_item import BaseTenantItemMixin
from fleetmaint.models.part import Part


class ServiceOrderPart(Base, BaseTenantItemMixin):
    """
    Part usage row: one inventory part consumed by one service order.

    Invariants:
    - service_note_id / part_id are immutable after insert
    - at most one row per (service_note_id, part_id)
    - unit_cost_at_time is a historical snapshot, never recomputed from Part.unit_cost
    - total_cost is stored on write, not recomputed on read
    """

    __tablename__ = "service_order_parts"
    __table_args__ = (
        UniqueConstraint("service_note_id", "part_id", name="uq_service_order_parts_note_part"),
        CheckConstraint("quantity_used > 0", name="ck_service_order_parts_quantity_positive"),
    )

    # =========
    # 🔒 Immutable references
    # =========
    service_note_id :Mapped[str] = mapped_column(
        String(36),
        ForeignKey("service_notes.id"),
        nullable=False,
        index=True,
        comment="Service order this usage belongs to",
    )

    part_id :Mapped[str] = mapped_column(
        String(36),
        ForeignKey("parts.id"),
        nullable=False,
        comment="Consumed inventory part",
    )

    # =========
    # 🔢 Quantity & historical cost
    # =========
    quantity_used :Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Quantity consumed, positive",
    )

    unit_cost_at_time :Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Unit cost captured at time of use (>= 0.01)",
    )

    total_cost :Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
        comment="quantity_used * unit_cost_at_time, stored on write",
    )

    part :Mapped[Part] = relationship(Part, lazy="joined")

    def __repr__(self) -> str:
        return (
            f"<ServiceOrderPart id={self.id} "
            f"part_id={self.part_id} "
            f"quantity_used={self.quantity_used} "
            f"total_cost={self.total_cost}>"
        )
