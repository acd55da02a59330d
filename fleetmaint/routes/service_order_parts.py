# fleetmaint/routes/service_order_parts.py
from flask import Blueprint, request, jsonify, send_file, current_app
from pydantic import ValidationError
import pandas as pd
import io

from fleetmaint.db.session import get_session
from fleetmaint.services.audit_log_service import AuditLogService
from fleetmaint.services.service_order_part_service import ServiceOrderPartService
from fleetmaint.agentic.schemas.error_type import ErrorType
from fleetmaint.agentic.schemas.dto.service_order_part_dto import (
    PartCartItemDTO,
    ReconcileResultDTO,
    ServiceOrderPartDTO,
)
from fleetmaint.agentic.execution.error_classifier import classify_error
from fleetmaint.logger import get_logger

logger = get_logger(__name__)

service_order_parts_bp = Blueprint('service_order_parts', __name__, url_prefix='/service-notes')

STATUS_BY_ERROR = {
    ErrorType.INPUT_ERROR: 404,
    ErrorType.SCHEMA_ERROR: 400,
    ErrorType.DATABASE_ERROR: 502,
    ErrorType.SYSTEM_ERROR: 500,
}


def _operator_id() -> str:
    """认证由外层应用负责，这里只读取操作者标识用于审计"""
    return request.headers.get('X-Operator-Id', 'anonymous')


def _build_service(db) -> ServiceOrderPartService:
    tenant_id = current_app.config['DEFAULT_TENANT_ID']
    return ServiceOrderPartService(db, AuditLogService(db, tenant_id), tenant_id)


def _error_response(e: Exception):
    et, msg = classify_error(e)
    if et == ErrorType.SYSTEM_ERROR:
        logger.exception("Unexpected error in service order parts route")
    return jsonify({'ok': False, 'error_type': et.value, 'error_message': msg}), STATUS_BY_ERROR.get(et, 500)


@service_order_parts_bp.route('/<service_note_id>/parts', methods=['GET'])
def list_parts(service_note_id):
    """服务单配件列表"""
    db = get_session()
    try:
        rows = _build_service(db).list_service_order_parts(service_note_id)
        return jsonify({
            'ok': True,
            'data': [ServiceOrderPartDTO.from_orm_model(r).model_dump(mode='json') for r in rows],
        })
    except Exception as e:
        return _error_response(e)
    finally:
        db.close()


@service_order_parts_bp.route('/<service_note_id>/parts', methods=['PUT'])
def reconcile_parts(service_note_id):
    """用购物车覆盖服务单配件"""
    payload = request.get_json(silent=True)
    # 兼容两种请求体：直接传列表，或 {"parts": [...]}
    raw_items = payload.get('parts') if isinstance(payload, dict) else payload
    if not isinstance(raw_items, list):
        return jsonify({
            'ok': False,
            'error_type': ErrorType.SCHEMA_ERROR.value,
            'error_message': 'Request body must be a list of cart items or {"parts": [...]}',
        }), 400

    db = get_session()
    try:
        items = [PartCartItemDTO.model_validate(raw).to_cart_item() for raw in raw_items]
        result = _build_service(db).reconcile_parts(
            service_note_id=service_note_id,
            cart_items=items,
            operator_id=_operator_id(),
        )
        dto = ReconcileResultDTO.from_domain_model(result)
        db.commit()
        return jsonify({'ok': True, 'data': dto.model_dump(mode='json'), 'warnings': dto.warnings()})
    except ValidationError as e:
        db.rollback()
        return jsonify({'ok': False, 'error_type': ErrorType.SCHEMA_ERROR.value, 'error_message': str(e)}), 400
    except Exception as e:
        db.rollback()
        return _error_response(e)
    finally:
        db.close()


@service_order_parts_bp.route('/<service_note_id>/parts/<service_order_part_id>', methods=['DELETE'])
def remove_part(service_note_id, service_order_part_id):
    """删除单条配件用量"""
    db = get_session()
    try:
        service = _build_service(db)
        row = service.repository.get(service_order_part_id)
        if not row or row.service_note_id != service_note_id:
            raise ValueError(f"Service order part not found: {service_order_part_id}")

        service.remove_part_from_service_order(
            service_order_part_id=service_order_part_id,
            operator_id=_operator_id(),
        )
        db.commit()
        return jsonify({'ok': True})
    except Exception as e:
        db.rollback()
        return _error_response(e)
    finally:
        db.close()


@service_order_parts_bp.route('/<service_note_id>/parts/export', methods=['GET'])
def export_parts(service_note_id):
    """下载服务单配件 Excel"""
    db = get_session()
    try:
        df = _build_service(db).export_service_order_parts_df(service_note_id)
    except Exception as e:
        return _error_response(e)
    finally:
        db.close()

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine='openpyxl') as writer:
        df.to_excel(writer, index=False, sheet_name='Parts')
    output.seek(0)

    return send_file(
        output,
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
        as_attachment=True,
        download_name=f"service_note_{service_note_id}_parts.xlsx",
    )
