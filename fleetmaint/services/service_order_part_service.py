from typing import Iterable, List
import pandas as pd
from sqlalchemy.orm import Session

from fleetmaint.constants import DEFAULT_TENANT_ID, MIN_UNIT_COST
from fleetmaint.models.service_order_part import ServiceOrderPart
from fleetmaint.services.audit_log_service import AuditLogService
from fleetmaint.services.service_note_service import ServiceNoteService
from fleetmaint.services.service_order_part_repository import ServiceOrderPartRepository
from fleetmaint.services.part_usage_reconciler import (
    PartCartItem,
    PartUsageReconciler,
    PartUsageReconcileResult,
    clamp_unit_cost,
    to_decimal,
)
from fleetmaint.utils.formatters import format_currency
from fleetmaint.logger import get_logger

logger = get_logger(__name__)


class ServiceOrderPartService:
    """
    Parts consumed by a service order.

    Responsibilities:
    - List part usage rows of a service order
    - Reconcile the rows with the parts cart edited by the user
    - Remove a single usage row
    - Record audit logs for every write
    - Export the usage rows as a DataFrame
    """

    def __init__(
        self,
        db: Session,
        audit_log_service: AuditLogService,
        tenant_id: str = DEFAULT_TENANT_ID,
    ):
        self.db = db
        self.audit_log_service = audit_log_service
        self.tenant_id = tenant_id
        self.repository = ServiceOrderPartRepository(db, tenant_id)
        self.service_note_service = ServiceNoteService(db, audit_log_service, tenant_id)

    @staticmethod
    def _snapshot(row: ServiceOrderPart) -> dict:
        return {
            "part_id": row.part_id,
            "quantity_used": row.quantity_used,
            "unit_cost_at_time": str(row.unit_cost_at_time),
            "total_cost": str(row.total_cost),
        }

    def list_service_order_parts(self, service_note_id: str) -> List[ServiceOrderPart]:
        '''
        服务单下的配件用量行，按创建时间倒序，part 关系已加载（sku / name / 当前库存）
        '''
        self.service_note_service.get_service_note(service_note_id)
        return self.repository.list_by_service_order(service_note_id)

    def reconcile_parts(
        self,
        *,
        service_note_id: str,
        cart_items: Iterable[PartCartItem],
        operator_id: str,
    ) -> PartUsageReconcileResult:
        '''
        用购物车覆盖服务单的配件用量（删除 -> 更新 -> 插入），并写审计日志。
        有变更时 result.rows 为重新读取的最新行。

        :param service_note_id: 服务单ID
        :param cart_items: 购物车条目
        :param operator_id: 操作者ID
        :raises ValueError: 服务单不存在
        :raises PersistenceFailure: 删除 / 更新 / 批量插入失败
        '''
        self.service_note_service.get_service_note(service_note_id)

        reconciler = PartUsageReconciler(self.repository)
        result = reconciler.reconcile(service_note_id, cart_items)

        if not result.changed:
            return result

        # 1️⃣ 删除
        for row in result.plan.to_delete:
            self.audit_log_service.record_delete(
                service_note_id=service_note_id,
                entity_type="service_order_part",
                entity_id=row.id,
                before_value=self._snapshot(row),
                operator_id=operator_id,
            )

        # 2️⃣ 更新：只记录真正变化的字段
        for update in result.plan.to_update:
            if update.previous_quantity != update.item.quantity_to_use:
                self.audit_log_service.record_update(
                    service_note_id=service_note_id,
                    entity_type="service_order_part",
                    entity_id=update.row.id,
                    changed_attribute="quantity_used",
                    before_value=update.previous_quantity,
                    after_value=update.item.quantity_to_use,
                    operator_id=operator_id,
                )
            new_cost = clamp_unit_cost(update.item.unit_cost)
            if new_cost != update.previous_unit_cost:
                self.audit_log_service.record_update(
                    service_note_id=service_note_id,
                    entity_type="service_order_part",
                    entity_id=update.row.id,
                    changed_attribute="unit_cost_at_time",
                    before_value=update.previous_unit_cost,
                    after_value=new_cost,
                    operator_id=operator_id,
                )
            self._record_cost_floor(service_note_id, update.row.id, update.item)

        # 3️⃣ 插入
        inserted_by_part = {row.part_id: row for row in result.inserted}
        for item in result.plan.to_insert:
            row = inserted_by_part.get(item.part_id)
            if row is None:
                continue
            self.audit_log_service.record_create(
                service_note_id=service_note_id,
                entity_type="service_order_part",
                entity_id=row.id,
                operator_id=operator_id,
            )
            self._record_cost_floor(service_note_id, row.id, item)

        self.db.flush()
        result.rows = self.repository.list_by_service_order(service_note_id)
        return result

    def _record_cost_floor(self, service_note_id: str, row_id: str, item: PartCartItem) -> None:
        # 单价被系统抬到下限时留痕
        requested = to_decimal(item.unit_cost)
        if requested < MIN_UNIT_COST:
            self.audit_log_service.record_system_update(
                service_note_id=service_note_id,
                entity_type="service_order_part",
                entity_id=row_id,
                changed_attribute="unit_cost_at_time",
                before_value=requested,
                after_value=clamp_unit_cost(requested),
            )

    def remove_part_from_service_order(self, *, service_order_part_id: str, operator_id: str) -> None:
        '''
        删除单条配件用量行（库存 / 成本回滚由库存子系统负责）
        '''
        row = self.repository.get(service_order_part_id)
        if not row:
            raise ValueError(f"Service order part not found: {service_order_part_id}")

        snapshot = self._snapshot(row)
        service_note_id = row.service_note_id
        self.repository.delete_many([row.id])

        self.audit_log_service.record_delete(
            service_note_id=service_note_id,
            entity_type="service_order_part",
            entity_id=service_order_part_id,
            before_value=snapshot,
            operator_id=operator_id,
        )
        logger.info(f"Removed part usage {service_order_part_id} from service note {service_note_id}")

    def build_parts_cart(self, service_note_id: str) -> List[PartCartItem]:
        '''
        把已持久化的用量行转换为购物车条目，用于编辑表单的初始值
        '''
        rows = self.list_service_order_parts(service_note_id)
        return [
            PartCartItem(
                part_id=row.part_id,
                sku=row.part.sku if row.part else None,
                name=row.part.name if row.part else None,
                available_quantity=row.part.quantity if row.part else None,
                quantity_to_use=row.quantity_used,
                unit_cost=to_decimal(row.unit_cost_at_time),
                total_cost=to_decimal(row.total_cost),
            )
            for row in rows
        ]

    def export_service_order_parts_df(self, service_note_id: str) -> pd.DataFrame:
        """
        Build a human-readable DataFrame of the parts used by a service order.

        This function does NOT persist data.
        """
        rows = self.list_service_order_parts(service_note_id)

        records = []
        grand_total = to_decimal(0)
        for row in rows:
            grand_total += to_decimal(row.total_cost)
            records.append({
                "SKU": row.part.sku if row.part else "",
                "Part": row.part.name if row.part else row.part_id,
                "Quantity": row.quantity_used,
                "Unit cost": format_currency(row.unit_cost_at_time),
                "Total": format_currency(row.total_cost),
            })

        df = pd.DataFrame(records, columns=["SKU", "Part", "Quantity", "Unit cost", "Total"])
        total_row = pd.DataFrame(
            [{"SKU": "", "Part": "TOTAL", "Quantity": int(sum(r.quantity_used for r in rows)),
              "Unit cost": "", "Total": format_currency(grand_total)}]
        )
        return pd.concat([df, total_row], ignore_index=True)
