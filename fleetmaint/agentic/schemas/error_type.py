from enum import Enum

class ErrorType(str, Enum):
    '''
    执行过程中可能出现的问题的结构化分类与表达

    参数	说明
    INPUT_ERROR:调用方输入不符合要求，例如服务单 / 用量行不存在。请调用方核对后重试。
    SCHEMA_ERROR:请求体不满足结构要求（字段类型错误等），无法解析为购物车条目。
    TOOL_NOT_ALLOWED:当前状态不允许调用该 tool。
    DATABASE_ERROR:数据库操作失败，例如约束冲突、连接失败、删除 / 更新 / 批量插入失败。可重试。
    SYSTEM_ERROR:未知异常或未分类异常。
    '''
    # 输入问题
    INPUT_ERROR = "INPUT_ERROR"
    SCHEMA_ERROR = "SCHEMA_ERROR"

    # 工具调用问题
    TOOL_NOT_ALLOWED = "TOOL_NOT_ALLOWED"

    # 系统问题
    DATABASE_ERROR = "DATABASE_ERROR"
    SYSTEM_ERROR = "SYSTEM_ERROR"
