# fleetmaint/services/part_usage_reconciler.py
'''
服务单配件用量对账（reconcile）

输入：期望的配件清单（购物车）+ 已持久化的配件用量行
输出：最小的 insert / update / delete 集合，并按 删除 -> 更新 -> 插入 的顺序落库

存储层只需提供以下方法（见 ServiceOrderPartRepository）：
- list_by_service_order(service_note_id)
- delete_many(ids)
- update_one(id, fields)
- insert_many(rows)
- insert_one(row)
'''
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional

from fleetmaint.constants import MIN_UNIT_COST, COST_TOLERANCE
from fleetmaint.logger import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def clamp_unit_cost(value) -> Decimal:
    """单价下限 0.01，并保留两位小数"""
    return max(to_decimal(value), MIN_UNIT_COST).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class PartCartItem:
    """用户在界面上编辑的期望状态（一行一个配件）"""
    part_id: Optional[str]
    quantity_to_use: Optional[int]
    unit_cost: Optional[Decimal] = None
    sku: Optional[str] = None
    name: Optional[str] = None
    available_quantity: Optional[int] = None  # 仅展示用，库存以 Part.quantity 为准
    total_cost: Optional[Decimal] = None


@dataclass
class ValidationSkip:
    item: PartCartItem
    reason: str


class PersistenceFailure(Exception):
    """删除 / 更新 / 批量插入失败，cause 为存储层原始异常"""

    def __init__(self, phase: str, cause: Exception):
        super().__init__(f"Failed to {phase} service order parts: {cause}")
        self.phase = phase
        self.cause = cause


@dataclass
class PartUsageUpdate:
    row: Any
    item: PartCartItem
    previous_quantity: int
    previous_unit_cost: Decimal


@dataclass
class PartUsagePlan:
    to_insert: List[PartCartItem] = field(default_factory=list)
    to_update: List[PartUsageUpdate] = field(default_factory=list)
    to_delete: List[Any] = field(default_factory=list)
    unchanged: List[Any] = field(default_factory=list)
    skipped: List[ValidationSkip] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.to_insert or self.to_update or self.to_delete)

    def summary(self) -> Dict[str, int]:
        return {
            "to_insert": len(self.to_insert),
            "to_update": len(self.to_update),
            "to_delete": len(self.to_delete),
            "unchanged": len(self.unchanged),
            "skipped": len(self.skipped),
        }


@dataclass
class PartUsageReconcileResult:
    plan: PartUsagePlan
    inserted: List[Any] = field(default_factory=list)
    updated_ids: List[str] = field(default_factory=list)
    deleted_ids: List[str] = field(default_factory=list)
    failed_inserts: List[PartCartItem] = field(default_factory=list)
    rows: Optional[List[Any]] = None  # 无变更时直接返回现有行

    @property
    def changed(self) -> bool:
        return not self.plan.is_empty


def validate_cart_items(desired: Iterable[PartCartItem]) -> tuple[List[PartCartItem], List[ValidationSkip]]:
    '''
    预过滤购物车：缺少 part_id 或数量 <= 0 的行直接丢弃（记录 warning，不抛错）。
    part_id 去掉首尾空白后作为键，同一 part_id 出现多次时以最后一次为准。

    :return: (有效条目, 被跳过的条目)
    '''
    valid: Dict[str, PartCartItem] = {}
    skipped: List[ValidationSkip] = []

    for item in desired:
        part_id = str(item.part_id).strip() if item.part_id is not None else ""
        if not part_id:
            logger.warning(f"Cart item missing part_id, skipped: {item}")
            skipped.append(ValidationSkip(item=item, reason="missing part_id"))
            continue
        if item.quantity_to_use is None or item.quantity_to_use <= 0:
            logger.warning(f"Cart item has invalid quantity, skipped: {item}")
            skipped.append(ValidationSkip(item=item, reason="quantity_to_use must be greater than 0"))
            continue
        if part_id != item.part_id:
            item = replace(item, part_id=part_id)
        if part_id in valid:
            logger.warning(f"Duplicate cart entry for part {part_id}, keeping the last one")
        valid[part_id] = item

    return list(valid.values()), skipped


def _needs_update(row, item: PartCartItem) -> bool:
    if row.quantity_used != item.quantity_to_use:
        return True
    # 已存的单价是抬过下限的，比较前对期望单价做同样的下限处理
    desired_cost = max(to_decimal(item.unit_cost), MIN_UNIT_COST)
    return abs(to_decimal(row.unit_cost_at_time) - desired_cost) > COST_TOLERANCE


def plan_part_usage_changes(desired: Iterable[PartCartItem], existing: Iterable[Any]) -> PartUsagePlan:
    '''
    纯函数：对比期望清单与现有行，得到互不相交的 insert / update / delete 集合。
    数量相同且单价差异在 0.01 以内的行保持不动（不写库，保留 created_at）。

    :param desired: 购物车条目
    :param existing: 同一服务单下已持久化的行（需有 id / part_id / quantity_used / unit_cost_at_time）
    '''
    existing = list(existing)
    valid, skipped = validate_cart_items(desired)
    plan = PartUsagePlan(skipped=skipped)

    existing_by_part = {row.part_id: row for row in existing}
    desired_part_ids = set()

    for item in valid:
        desired_part_ids.add(item.part_id)
        row = existing_by_part.get(item.part_id)
        if row is None:
            plan.to_insert.append(item)
        elif _needs_update(row, item):
            plan.to_update.append(PartUsageUpdate(
                row=row,
                item=item,
                previous_quantity=row.quantity_used,
                previous_unit_cost=to_decimal(row.unit_cost_at_time),
            ))
        else:
            plan.unchanged.append(row)

    plan.to_delete = [row for row in existing if row.part_id not in desired_part_ids]
    return plan


class PartUsageReconciler:
    """
    Apply a PartUsagePlan through a persistence store.

    Apply order is delete -> update (one call per row) -> insert. The
    store gives no cross-phase transaction; a failed phase leaves earlier phases applied.
    Callers must not run two reconciliations for the same service order at once.
    """

    def __init__(self, store):
        self.store = store

    def reconcile(self, service_note_id: str, desired: Iterable[PartCartItem]) -> PartUsageReconcileResult:
        '''
        :param service_note_id: 服务单ID
        :param desired: 购物车条目
        :raises PersistenceFailure: 读取 / 删除 / 更新 / 批量插入失败
        '''
        desired = list(desired)
        logger.info(f"Reconciling parts for service note {service_note_id}: {len(desired)} cart items")

        try:
            existing = self.store.list_by_service_order(service_note_id)
        except Exception as e:
            logger.error(f"Error fetching existing parts: {e}")
            raise PersistenceFailure("fetch", e) from e

        plan = plan_part_usage_changes(desired, existing)
        logger.info(f"Parts analysis for {service_note_id}: {plan.summary()}")

        # 无变更：不写库，直接返回现有行
        if plan.is_empty:
            logger.info("No changes detected, returning existing parts")
            return PartUsageReconcileResult(plan=plan, rows=list(existing))

        result = PartUsageReconcileResult(plan=plan)
        result.deleted_ids = self._apply_deletes(plan)
        result.updated_ids = self._apply_updates(plan)
        result.inserted, result.failed_inserts = self._apply_inserts(service_note_id, plan)

        logger.info(
            f"Parts operation completed for {service_note_id}: "
            f"deleted={len(result.deleted_ids)} updated={len(result.updated_ids)} "
            f"inserted={len(result.inserted)} failed_inserts={len(result.failed_inserts)}"
        )
        return result

    def _apply_deletes(self, plan: PartUsagePlan) -> List[str]:
        if not plan.to_delete:
            return []
        ids = [row.id for row in plan.to_delete]
        try:
            self.store.delete_many(ids)
        except Exception as e:
            logger.error(f"Error deleting removed parts: {e}")
            raise PersistenceFailure("delete", e) from e
        logger.info(f"Removed parts deleted: {len(ids)}")
        return ids

    def _apply_updates(self, plan: PartUsagePlan) -> List[str]:
        updated = []
        for update in plan.to_update:
            fields = {
                "quantity_used": update.item.quantity_to_use,
                "unit_cost_at_time": clamp_unit_cost(update.item.unit_cost),
                "updated_at": datetime.now(timezone.utc),
            }
            try:
                self.store.update_one(update.row.id, fields)
            except Exception as e:
                logger.error(f"Error updating part usage {update.row.id}: {e}")
                raise PersistenceFailure("update", e) from e
            updated.append(update.row.id)
        return updated

    def _apply_inserts(self, service_note_id: str, plan: PartUsagePlan) -> tuple[List[Any], List[PartCartItem]]:
        if not plan.to_insert:
            return [], []

        rows = [
            {
                "service_note_id": service_note_id,
                "part_id": item.part_id,
                "quantity_used": item.quantity_to_use,
                "unit_cost_at_time": clamp_unit_cost(item.unit_cost),
            }
            for item in plan.to_insert
        ]

        try:
            inserted = list(self.store.insert_many(rows))
            logger.info(f"New parts inserted successfully: {len(inserted)}")
            return inserted, []
        except Exception as batch_error:
            logger.error(f"Batch insert failed, trying individual inserts: {batch_error}")

        # 逐行插入：单行失败只记录日志，继续处理剩余行
        inserted, failed = [], []
        for item, row in zip(plan.to_insert, rows):
            try:
                inserted.append(self.store.insert_one(row))
            except Exception as e:
                logger.error(f"Error inserting part {row['part_id']}: {e}")
                failed.append(item)
        return inserted, failed
