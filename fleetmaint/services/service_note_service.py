from datetime import date
from typing import Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from fleetmaint.constants import DEFAULT_TENANT_ID
from fleetmaint.db.enums import ServiceNotePriority, ServiceNoteStatus
from fleetmaint.models.service_note import ServiceNote
from fleetmaint.services.audit_log_service import AuditLogService
from fleetmaint.services.service_order_part_repository import ServiceOrderPartRepository


class ServiceNoteService:
    """
    Service orders (maintenance work against one vehicle).
    """

    def __init__(self, db: Session, audit_log_service: AuditLogService, tenant_id: str = DEFAULT_TENANT_ID):
        self.db = db
        self.audit_log_service = audit_log_service
        self.tenant_id = tenant_id

    def create_service_note(
        self,
        *,
        vehicle_id: str,
        maintenance_type: str,
        mechanic: str,
        description: str,
        start_date: date,
        priority: ServiceNotePriority = ServiceNotePriority.medium,
        mileage: Optional[int] = None,
        observations: Optional[str] = None,
        operator_id: str,
    ) -> ServiceNote:
        if not vehicle_id:
            raise ValueError("vehicle_id is required")

        note = ServiceNote(
            id=str(uuid4()),
            tenant_id=self.tenant_id,
            vehicle_id=vehicle_id,
            maintenance_type=maintenance_type,
            mechanic=mechanic,
            description=description,
            start_date=start_date,
            priority=priority,
            mileage=mileage,
            observations=observations,
            status=ServiceNoteStatus.open,
        )
        self.db.add(note)
        self.db.flush()

        self.audit_log_service.record_create(
            service_note_id=note.id,
            entity_type="service_note",
            entity_id=note.id,
            operator_id=operator_id,
        )
        return note

    def get_service_note(self, service_note_id: str) -> ServiceNote:
        note = (
            self.db.query(ServiceNote)
            .filter(ServiceNote.tenant_id == self.tenant_id, ServiceNote.id == service_note_id)
            .first()
        )
        if not note:
            raise ValueError(f"Service note not found: {service_note_id}")
        return note

    def delete_service_note(self, *, service_note_id: str, operator_id: str) -> None:
        '''
        删除服务单：先删除配件用量行（库存回滚由库存子系统负责），再删除服务单本身
        '''
        note = self.get_service_note(service_note_id)

        repository = ServiceOrderPartRepository(self.db, self.tenant_id)
        removed = repository.delete_by_service_order(service_note_id)

        self.db.delete(note)
        self.db.flush()

        self.audit_log_service.record_delete(
            service_note_id=service_note_id,
            entity_type="service_note",
            entity_id=service_note_id,
            before_value={"vehicle_id": note.vehicle_id, "parts_removed": removed},
            operator_id=operator_id,
        )
