# fleetmaint/models/service_note.py
from typing import Optional
from datetime import date
from sqlalchemy import String, Integer, Date, Enum, Text
from sqlalchemy.orm import Mapped, mapped_column
from fleetmaint.db.base import Base
from fleetmaint.db.enums import ServiceNoteStatus, ServiceNotePriority
from fleetmaint.models.mixins.base_tenant_item import BaseTenantItemMixin


class ServiceNote(Base, BaseTenantItemMixin):
    """
    Service order: one unit of maintenance work against one vehicle.
    """
    __tablename__ = "service_notes"

    # =========
    # 🔒 Immutable facts
    # =========
    vehicle_id :Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
        comment="Vehicle under maintenance")

    # =========
    # ✍️ Business editable
    # =========
    maintenance_type :Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Maintenance type (preventive, corrective, ...)")
    mechanic :Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Responsible mechanic")
    description :Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Work description")
    observations :Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Free text observations")
    mileage :Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Odometer reading at service start")
    start_date :Mapped[date] = mapped_column(
        Date,
        nullable=False,
        comment="Service start date")
    end_date :Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
        comment="Service end date")

    # =========
    # 🔁 Workflow status
    # =========
    priority :Mapped[ServiceNotePriority] = mapped_column(
        Enum(ServiceNotePriority, name="service_note_priority"),
        nullable=False,
        default=ServiceNotePriority.medium,
        comment="Service priority")
    status :Mapped[ServiceNoteStatus] = mapped_column(
        Enum(ServiceNoteStatus, name="service_note_status"),
        nullable=False,
        default=ServiceNoteStatus.open,
        comment="Service workflow status")

    def __repr__(self) -> str:
        return f"<ServiceNote id={self.id} vehicle_id={self.vehicle_id} status={self.status.value}>"
