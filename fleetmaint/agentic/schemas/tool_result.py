# fleetmaint/agentic/schemas/tool_result.py
from typing import Any, Dict, List, Optional
from pydantic import BaseModel
from fleetmaint.agentic.schemas.error_type import ErrorType

class ToolResult(BaseModel):
    '''
    工具执行结果的结构化表达

    参数	说明
    ok: bool  - 这次调用是否完成预期操作？
    error_type: Optional[ErrorType] - 错误类型的结构化记录
    error_message: Optional[str] - 面向调用方的可读报错信息
    data: Optional[Dict[str, Any]] - 工具调用的结构化数据结果
    warnings: List[str] - 不影响成功与否、但需要告知用户的问题（如被丢弃的购物车条目）
    explanation: Optional[str] - 自然语言解释，解释调用结果，下一步建议等
    side_effect: bool - 这次调用是否会改变持久化状态
    irreversible: bool - 这次调用是否不可逆/不可撤销（如删除数据）
    audit_ref_id: Optional[str] - 用于审计追踪的唯一标识符
    '''
    ok: bool  # 是否成功完成

    error_type: Optional[ErrorType] = None
    error_message: Optional[str] = None

    data: Optional[Dict[str, Any]] = None
    warnings: List[str] = []
    explanation: Optional[str] = None

    side_effect: bool = False
    irreversible: bool = False

    audit_ref_id: Optional[str] = None
