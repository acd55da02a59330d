# fleetmaint/services/service_order_part_repository.py
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy import desc
from sqlalchemy.orm import Session

from fleetmaint.constants import DEFAULT_TENANT_ID
from fleetmaint.models.service_order_part import ServiceOrderPart


class ServiceOrderPartRepository:
    """
    SQLAlchemy persistence for part usage rows, scoped to one tenant.

    Writes are flushed, never committed; the caller owns the transaction.
    Inserts run inside a SAVEPOINT so a failed batch leaves the session usable.
    """

    UPDATABLE_FIELDS = {"quantity_used", "unit_cost_at_time", "updated_at"}

    def __init__(self, db: Session, tenant_id: str = DEFAULT_TENANT_ID):
        self.db = db
        self.tenant_id = tenant_id

    def _query(self):
        return self.db.query(ServiceOrderPart).filter(ServiceOrderPart.tenant_id == self.tenant_id)

    @staticmethod
    def _total_cost(quantity_used: int, unit_cost_at_time) -> Decimal:
        return (Decimal(quantity_used) * Decimal(str(unit_cost_at_time))).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )

    def get(self, service_order_part_id: str) -> Optional[ServiceOrderPart]:
        return self._query().filter(ServiceOrderPart.id == service_order_part_id).first()

    def list_by_service_order(self, service_note_id: str) -> List[ServiceOrderPart]:
        return (
            self._query()
            .filter(ServiceOrderPart.service_note_id == service_note_id)
            .order_by(desc(ServiceOrderPart.created_at))
            .all()
        )

    def delete_many(self, ids: List[str]) -> None:
        if not ids:
            return
        rows = self._query().filter(ServiceOrderPart.id.in_(ids)).all()
        for row in rows:
            self.db.delete(row)
        self.db.flush()

    def update_one(self, service_order_part_id: str, fields: Dict[str, Any]) -> ServiceOrderPart:
        row = self.get(service_order_part_id)
        if not row:
            raise ValueError(f"Service order part not found: {service_order_part_id}")

        for name, value in fields.items():
            if name not in self.UPDATABLE_FIELDS:
                raise ValueError(f"Field '{name}' is not updatable")
            setattr(row, name, value)

        row.total_cost = self._total_cost(row.quantity_used, row.unit_cost_at_time)
        self.db.flush()
        return row

    def _build(self, row: Dict[str, Any]) -> ServiceOrderPart:
        return ServiceOrderPart(
            id=str(uuid4()),
            tenant_id=self.tenant_id,
            service_note_id=row["service_note_id"],
            part_id=row["part_id"],
            quantity_used=row["quantity_used"],
            unit_cost_at_time=row["unit_cost_at_time"],
            total_cost=self._total_cost(row["quantity_used"], row["unit_cost_at_time"]),
        )

    def insert_many(self, rows: List[Dict[str, Any]]) -> List[ServiceOrderPart]:
        objs = [self._build(r) for r in rows]
        with self.db.begin_nested():
            self.db.add_all(objs)
            self.db.flush()
        return objs

    def insert_one(self, row: Dict[str, Any]) -> ServiceOrderPart:
        obj = self._build(row)
        with self.db.begin_nested():
            self.db.add(obj)
            self.db.flush()
        return obj

    def delete_by_service_order(self, service_note_id: str) -> int:
        rows = self.list_by_service_order(service_note_id)
        for row in rows:
            self.db.delete(row)
        self.db.flush()
        return len(rows)
