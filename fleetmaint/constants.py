# fleetmaint/constants.py
import os
from decimal import Decimal

# 租户隔离：所有业务表都带 tenant_id，未配置时落到默认租户
DEFAULT_TENANT_ID = os.getenv("DEFAULT_TENANT_ID", "00000000-0000-0000-0000-000000000001")

# 配件成本相关常量
MIN_UNIT_COST = Decimal("0.01")     # 写入的单价下限，0 或负数一律抬到该值
COST_TOLERANCE = Decimal("0.01")    # 单价差异超过该值才视为变更

CURRENCY_SYMBOL = "R$"
