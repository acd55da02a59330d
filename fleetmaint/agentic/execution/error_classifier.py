# fleetmaint/agentic/execution/error_classifier.py
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from fleetmaint.agentic.schemas.error_type import ErrorType
from fleetmaint.services.part_usage_reconciler import PersistenceFailure


def classify_error(e: Exception) -> tuple[ErrorType, str]:
    """
    把 service 抛出的异常映射为 ErrorType。
    service 层的输入类错误统一用 ValueError（not found / required / not updatable）。
    """
    msg = str(e)

    # --- 结构类：pydantic 解析失败（ValidationError 也是 ValueError，需先判断） ---
    if isinstance(e, ValidationError):
        return ErrorType.SCHEMA_ERROR, msg

    # --- DB/系统类 ---
    if isinstance(e, (PersistenceFailure, SQLAlchemyError)):
        return ErrorType.DATABASE_ERROR, msg

    # --- 输入类 ---
    if isinstance(e, ValueError):
        return ErrorType.INPUT_ERROR, msg

    # 兜底：未知异常
    return ErrorType.SYSTEM_ERROR, msg
