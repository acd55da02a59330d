from sqlalchemy.orm import Session

from fleetmaint.agentic.schemas.tool_result import ToolResult
from fleetmaint.agentic.schemas.dto.service_order_part_dto import ServiceOrderPartDTO
from fleetmaint.agentic.execution.error_classifier import classify_error

from fleetmaint.services.service_order_part_service import ServiceOrderPartService
from fleetmaint.services.audit_log_service import AuditLogService
from fleetmaint.constants import DEFAULT_TENANT_ID
from fleetmaint.utils.formatters import format_currency

from fleetmaint.agentic.schemas.tool_spec import ToolSpec
from fleetmaint.agentic.schemas.risk_profile import ToolRiskProfile
from fleetmaint.agentic.tools.registry import tool_registry


def list_service_order_parts_tool(
    *,
    db: Session,
    service_note_id: str,
    tenant_id: str = DEFAULT_TENANT_ID,
) -> ToolResult:
    """
    Tool: list_service_order_parts (read only)
    """
    service = ServiceOrderPartService(db, AuditLogService(db, tenant_id), tenant_id)
    try:
        rows = service.list_service_order_parts(service_note_id)
    except Exception as e:
        et, msg = classify_error(e)
        return ToolResult(ok=False, error_type=et, error_message=msg)

    parts = [ServiceOrderPartDTO.from_orm_model(r).model_dump(mode="json") for r in rows]
    total = sum(r.total_cost for r in rows)
    return ToolResult(
        ok=True,
        data={"parts": parts, "total_cost": float(total), "total_cost_display": format_currency(total)},
        explanation=f"{len(parts)} part(s) used on this service order.",
    )


spec = ToolSpec(
    name="list_service_order_parts",
    func=list_service_order_parts_tool,
    description="List the parts used on a service order with their historical cost",
    input_schema={"db": "Session", "service_note_id": "str"},
    output_schema="ToolResult",
    risk_profile=ToolRiskProfile(),
)

tool_registry.register(spec)
