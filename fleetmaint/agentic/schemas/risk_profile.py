from pydantic import BaseModel

class ToolRiskProfile(BaseModel):
    '''
    工具对服务单数据的影响

    参数	说明
    modifies_persistent_data	是否写库
    irreversible	是否不可逆
    deletes_data	是否会删除配件用量行
    affects_multiple_records	一次调用是否可能改多行
    writes_audit_log	是否写审计日志
    '''
    modifies_persistent_data:bool = False
    irreversible:bool = False
    deletes_data:bool = False
    affects_multiple_records:bool = False
    writes_audit_log:bool = False

    @property
    def read_only(self) -> bool:
        return not (self.modifies_persistent_data or self.deletes_data)
