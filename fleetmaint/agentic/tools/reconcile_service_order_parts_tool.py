from typing import Any, Dict, List
from sqlalchemy.orm import Session

from fleetmaint.agentic.schemas.tool_result import ToolResult
from fleetmaint.agentic.schemas.error_type import ErrorType
from fleetmaint.agentic.schemas.dto.service_order_part_dto import PartCartItemDTO, ReconcileResultDTO
from fleetmaint.agentic.execution.error_classifier import classify_error

from fleetmaint.services.service_order_part_service import ServiceOrderPartService
from fleetmaint.services.audit_log_service import AuditLogService
from fleetmaint.constants import DEFAULT_TENANT_ID

from fleetmaint.agentic.schemas.tool_spec import ToolSpec
from fleetmaint.agentic.schemas.risk_profile import ToolRiskProfile
from fleetmaint.agentic.tools.registry import tool_registry

#Part 1 工具实现
def reconcile_service_order_parts_tool(
    *,
    db: Session,
    service_note_id: str,
    cart_items: List[Dict[str, Any]],
    operator_id: str,
    tenant_id: str = DEFAULT_TENANT_ID,
) -> ToolResult:
    """
    Tool: reconcile_service_order_parts

    Side effects:
    - Deletes usage rows whose part is no longer in the cart
    - Updates rows whose quantity / unit cost changed
    - Inserts rows for new parts

    Preconditions:
    - Service note exists
    - No other reconciliation for the same service note is running
    """
    audit = AuditLogService(db, tenant_id)
    service = ServiceOrderPartService(db, audit, tenant_id)

    try:
        items = [PartCartItemDTO.model_validate(raw).to_cart_item() for raw in cart_items]
        # 显式事务边界：tool 层负责提交/回滚，executor 不要重复做
        result = service.reconcile_parts(
            service_note_id=service_note_id,
            cart_items=items,
            operator_id=operator_id,
        )
        dto = ReconcileResultDTO.from_domain_model(result)
        db.commit()

        return ToolResult(
            ok=True,
            data=dto.model_dump(mode="json"),
            warnings=dto.warnings(),
            explanation=(
                "Service order parts are in sync with the cart."
                if dto.changed else
                "No changes detected; existing parts returned unchanged."
            ),
            side_effect=dto.changed,
            irreversible=bool(dto.deleted_ids),
            audit_ref_id=service_note_id,
        )

    except Exception as e:
        db.rollback()
        et, msg = classify_error(e)

        if et == ErrorType.SCHEMA_ERROR:
            explain = "Cart payload could not be parsed. Fix the field types and retry."
        elif et == ErrorType.INPUT_ERROR:
            explain = "Input is invalid (e.g., service note not found). Re-check inputs and retry."
        elif et == ErrorType.DATABASE_ERROR:
            explain = (
                "Database error occurred. Some phases may have been applied; "
                "re-read the service order parts before retrying."
            )
        else:
            explain = "Unexpected system error occurred. Retry once; if it fails again, escalate."

        return ToolResult(
            ok=False,
            error_type=et,
            error_message=msg,
            explanation=explain,
        )

#Part 2 注册工具，import时自动注册
spec = ToolSpec(
    name="reconcile_service_order_parts",
    func=reconcile_service_order_parts_tool,
    description="Bring the parts used on a service order in line with the edited parts cart",
    input_schema={"db": "Session",
                  "service_note_id": "str",
                  "cart_items": "List[PartCartItem]",
                  "operator_id": "str"},
    output_schema="ToolResult",
    risk_profile=ToolRiskProfile(
        modifies_persistent_data=True,
        irreversible=False,
        deletes_data=True,
        affects_multiple_records=True,
        writes_audit_log=True,
    )
)

tool_registry.register(spec)
