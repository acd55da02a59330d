from decimal import Decimal, InvalidOperation
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, field_validator

from fleetmaint.models.service_order_part import ServiceOrderPart
from fleetmaint.services.part_usage_reconciler import PartCartItem, PartUsageReconcileResult


class PartCartItemDTO(BaseModel):
    """
    请求体中的购物车条目。字段都允许缺失：
    缺 part_id / 数量不合法的条目交给对账预过滤丢弃，而不是整单拒绝。
    """
    part_id: Optional[str] = None
    sku: Optional[str] = None
    name: Optional[str] = None
    available_quantity: Optional[int] = None
    quantity_to_use: Optional[int] = None
    unit_cost: Optional[Decimal] = None
    total_cost: Optional[Decimal] = None

    @field_validator("quantity_to_use", "available_quantity", mode="before")
    @classmethod
    def _parse_quantity(cls, value):
        # 空串 / 非数字 / 小数一律视为缺失，由预过滤跳过该条目
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, str):
            value = value.strip()
        try:
            number = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return None
        if not number.is_finite() or number != number.to_integral_value():
            return None
        return int(number)

    def to_cart_item(self) -> PartCartItem:
        return PartCartItem(
            part_id=self.part_id,
            sku=self.sku,
            name=self.name,
            available_quantity=self.available_quantity,
            quantity_to_use=self.quantity_to_use,
            unit_cost=self.unit_cost,
            total_cost=self.total_cost,
        )


class ServiceOrderPartDTO(BaseModel):
    id: str
    service_note_id: str
    part_id: str
    sku: Optional[str] = None
    name: Optional[str] = None
    stock_quantity: Optional[int] = None

    quantity_used: int
    unit_cost_at_time: float
    total_cost: float

    created_at: Optional[datetime] = None

    @classmethod
    def from_orm_model(cls, row: ServiceOrderPart) -> "ServiceOrderPartDTO":
        part = row.part
        return cls(
            id=row.id,
            service_note_id=row.service_note_id,
            part_id=row.part_id,
            sku=part.sku if part else None,
            name=part.name if part else None,
            stock_quantity=part.quantity if part else None,
            quantity_used=row.quantity_used,
            unit_cost_at_time=float(row.unit_cost_at_time),
            total_cost=float(row.total_cost),
            created_at=row.created_at,
        )


class SkippedCartItemDTO(BaseModel):
    part_id: Optional[str] = None
    sku: Optional[str] = None
    reason: str


class ReconcileResultDTO(BaseModel):
    changed: bool
    summary: dict
    inserted: List[ServiceOrderPartDTO]
    updated_ids: List[str]
    deleted_ids: List[str]
    failed_part_ids: List[str]
    skipped: List[SkippedCartItemDTO]
    rows: List[ServiceOrderPartDTO]

    @classmethod
    def from_domain_model(cls, result: PartUsageReconcileResult) -> "ReconcileResultDTO":
        return cls(
            changed=result.changed,
            summary=result.plan.summary(),
            inserted=[ServiceOrderPartDTO.from_orm_model(r) for r in result.inserted],
            updated_ids=list(result.updated_ids),
            deleted_ids=list(result.deleted_ids),
            failed_part_ids=[item.part_id for item in result.failed_inserts],
            skipped=[
                SkippedCartItemDTO(part_id=s.item.part_id, sku=s.item.sku, reason=s.reason)
                for s in result.plan.skipped
            ],
            rows=[ServiceOrderPartDTO.from_orm_model(r) for r in (result.rows or [])],
        )

    def warnings(self) -> List[str]:
        messages = [
            f"Cart item {s.sku or s.part_id or '<no part>'} ignored: {s.reason}"
            for s in self.skipped
        ]
        messages += [f"Part {part_id} could not be saved" for part_id in self.failed_part_ids]
        return messages
