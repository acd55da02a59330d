from typing import Any, Optional, Union
from uuid import uuid4
from decimal import Decimal
from datetime import datetime, date
import re

from sqlalchemy.orm import Session

from fleetmaint.models.audit_log import AuditLog
from fleetmaint.db.enums import AuditEntityType, AuditAction
from fleetmaint.constants import DEFAULT_TENANT_ID

class AuditLogService:
    """
    Centralized service for recording all auditable actions.
    This service is the ONLY place where AuditLog records can be created.
    """

    def __init__(self, db: Session, tenant_id: str = DEFAULT_TENANT_ID):
        self.db = db
        self.tenant_id = tenant_id

    def serialize_audit_value(self, value) -> Any:
        if value is None:
            return None
        if isinstance(value, Decimal):
            return str(value)      # 金额保留精度，不转 float
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        if isinstance(value, (int, float, str, bool)):
            return value
        return str(value)  # 兜底

    def _normalize_entity_type(self, entity_type: Union[str, AuditEntityType]) -> AuditEntityType:
        """
        将字符串或枚举值转换为 AuditEntityType 枚举
        支持：枚举本身 / 枚举值 "service_order_part" / 类名 "ServiceOrderPart"
        """
        if isinstance(entity_type, AuditEntityType):
            return entity_type

        entity_type_str = str(entity_type).strip()
        # 驼峰类名转下划线小写
        snake_case = re.sub(r'(?<!^)(?=[A-Z])', '_', entity_type_str).lower()

        for enum_member in AuditEntityType:
            if enum_member.value in (entity_type_str.lower(), snake_case):
                return enum_member

        raise ValueError(f"Unknown entity_type: {entity_type_str}. Valid values: {[e.value for e in AuditEntityType]}")

    def _add(
        self,
        *,
        service_note_id: Optional[str],
        entity_type: Union[str, AuditEntityType],
        entity_id: str,
        action: AuditAction,
        changed_attribute: str,
        before_value: Any,
        after_value: Any,
        operator_id: str,
    ) -> AuditLog:
        log = AuditLog(
            id=str(uuid4()),
            tenant_id=self.tenant_id,
            service_note_id=service_note_id,
            entity_type=self._normalize_entity_type(entity_type),
            entity_id=entity_id,
            action=action,
            changed_attribute=changed_attribute,
            before_value=self.serialize_audit_value(before_value),
            after_value=self.serialize_audit_value(after_value),
            operator_id=operator_id,
            timestamp=datetime.now(),
        )
        self.db.add(log)
        return log

    def record_create(
        self,
        *,
        service_note_id: Optional[str],
        entity_type: Union[str, AuditEntityType],
        entity_id: str,
        operator_id: str,
    ) -> None:
        '''
        创建一条创建操作的审计日志
        适用于创建 Part, ServiceNote, ServiceOrderPart 等实体时调用

        :param service_note_id: 从属服务单ID,可选
        :type service_note_id: Optional[str]
        :param entity_type: 实体类型：可以是字符串或 AuditEntityType 枚举
        :type entity_type: Union[str, AuditEntityType]
        :param entity_id: 所属实体唯一id
        :type entity_id: str
        :param operator_id: 操作用户ID
        :type operator_id: str
        '''
        self._add(
            service_note_id=service_note_id,
            entity_type=entity_type,
            entity_id=entity_id,
            action=AuditAction.create,
            changed_attribute='__all__',
            before_value=None,
            after_value=None,
            operator_id=operator_id,
        )

    def record_update(
        self,
        *,
        service_note_id: Optional[str],
        entity_type: Union[str, AuditEntityType],
        entity_id: str,
        changed_attribute: str,
        before_value: Any,
        after_value: Any,
        operator_id: str,
    ) -> None:
        '''
        创建一条更新操作的审计日志

        :param service_note_id: 从属服务单ID,可选
        :param entity_type: 实体类型：可以是字符串或 AuditEntityType 枚举
        :param entity_id: 所属实体唯一id
        :param changed_attribute: 变更的属性名称
        :param before_value：修改前的值
        :param after_value: 修改后的值
        :param operator_id: 操作用户ID
        '''
        self._add(
            service_note_id=service_note_id,
            entity_type=entity_type,
            entity_id=entity_id,
            action=AuditAction.update,
            changed_attribute=changed_attribute,
            before_value=before_value,
            after_value=after_value,
            operator_id=operator_id,
        )

    def record_delete(
        self,
        *,
        service_note_id: Optional[str],
        entity_type: Union[str, AuditEntityType],
        entity_id: str,
        before_value: Any,
        operator_id: str,
    ) -> None:
        '''
        创建一条删除操作的审计日志，before_value 保存被删除记录的快照
        '''
        self._add(
            service_note_id=service_note_id,
            entity_type=entity_type,
            entity_id=entity_id,
            action=AuditAction.delete,
            changed_attribute='__all__',
            before_value=before_value,
            after_value=None,
            operator_id=operator_id,
        )

    def record_system_update(
        self,
        *,
        service_note_id: Optional[str],
        entity_type: Union[str, AuditEntityType],
        entity_id: str,
        changed_attribute: str,
        before_value: Any,
        after_value: Any,
    ) -> None:
        '''
        创建一条系统自动更新操作的审计日志，operator 固定为 SYSTEM
        '''
        self._add(
            service_note_id=service_note_id,
            entity_type=entity_type,
            entity_id=entity_id,
            action=AuditAction.system,
            changed_attribute=changed_attribute,
            before_value=before_value,
            after_value=after_value,
            operator_id="SYSTEM",
        )
