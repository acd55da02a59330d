"""
数据库自动初始化检查模块
在应用启动时自动检查并执行必要的初始化步骤
"""
from sqlalchemy import inspect
from fleetmaint.db.session import get_engine
from fleetmaint.db.base import Base
from fleetmaint.logger import get_logger
#-------------------导入所有表-----------------------
from fleetmaint.models.part import Part
from fleetmaint.models.service_note import ServiceNote
from fleetmaint.models.service_order_part import ServiceOrderPart
from fleetmaint.models.audit_log import AuditLog

logger = get_logger(__name__)

REQUIRED_TABLES = {
    Part.__tablename__,
    ServiceNote.__tablename__,
    ServiceOrderPart.__tablename__,
    AuditLog.__tablename__,
}


def check_tables_exist() -> bool:
    """检查数据库表是否齐全"""
    engine = get_engine()
    inspector = inspect(engine)
    tables = set(inspector.get_table_names())
    missing = REQUIRED_TABLES - tables
    if missing:
        logger.info(f"缺少数据表: {sorted(missing)}")
        return False
    return True


def auto_init():
    """
    自动初始化检查
    如果数据库未初始化，自动建表
    """
    logger.info("检查数据库初始化状态...")

    if not check_tables_exist():
        logger.info("数据库表不存在，正在创建...")
        try:
            Base.metadata.create_all(bind=get_engine())
            logger.info("数据库表创建成功")
        except Exception as e:
            logger.error(f"数据库表创建失败: {e}")
            raise
    else:
        logger.info("数据库表已存在")


if __name__ == "__main__":
    auto_init()
