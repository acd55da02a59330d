from decimal import Decimal
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import or_
from sqlalchemy.orm import Session

from fleetmaint.constants import DEFAULT_TENANT_ID
from fleetmaint.models.part import Part
from fleetmaint.services.audit_log_service import AuditLogService


class PartService:
    """
    Inventory catalogue for spare parts.
    Stock movements are owned by the inventory subsystem; this service only
    registers parts and answers read queries.
    """

    def __init__(self, db: Session, audit_log_service: AuditLogService, tenant_id: str = DEFAULT_TENANT_ID):
        self.db = db
        self.audit_log_service = audit_log_service
        self.tenant_id = tenant_id

    def create_part(
        self,
        *,
        sku: str,
        name: str,
        unit_cost: Decimal,
        quantity: int = 0,
        min_stock: int = 0,
        operator_id: str,
    ) -> Part:
        '''
        登记新配件

        :param sku: 配件编码（租户内唯一）
        :param name: 配件名称
        :param unit_cost: 当前单价
        :param quantity: 初始库存
        :param min_stock: 低库存阈值
        :param operator_id: 操作者ID
        '''
        sku = (sku or "").strip()
        name = (name or "").strip()
        if not sku or not name:
            raise ValueError("sku and name are required")
        if Decimal(str(unit_cost)) < 0:
            raise ValueError("unit_cost must not be negative")

        exists = (
            self.db.query(Part)
            .filter(Part.tenant_id == self.tenant_id, Part.sku == sku)
            .first()
        )
        if exists:
            raise ValueError(f"Part with sku '{sku}' already exists")

        part = Part(
            id=str(uuid4()),
            tenant_id=self.tenant_id,
            sku=sku,
            name=name,
            unit_cost=Decimal(str(unit_cost)),
            quantity=quantity,
            min_stock=min_stock,
        )
        self.db.add(part)
        self.db.flush()

        self.audit_log_service.record_create(
            service_note_id=None,
            entity_type="part",
            entity_id=part.id,
            operator_id=operator_id,
        )
        return part

    def get_part(self, part_id: str) -> Part:
        part = (
            self.db.query(Part)
            .filter(Part.tenant_id == self.tenant_id, Part.id == part_id)
            .first()
        )
        if not part:
            raise ValueError(f"Part not found: {part_id}")
        return part

    def list_parts(self, search: Optional[str] = None) -> List[Part]:
        query = self.db.query(Part).filter(Part.tenant_id == self.tenant_id)
        if search:
            query = query.filter(or_(Part.name.contains(search), Part.sku.contains(search)))
        return query.order_by(Part.name).all()

    def list_low_stock_parts(self) -> List[Part]:
        return (
            self.db.query(Part)
            .filter(Part.tenant_id == self.tenant_id, Part.quantity <= Part.min_stock)
            .order_by(Part.quantity)
            .all()
        )
