# run.py
"""
run.py
标准 Flask 服务启动脚本（给开发者 / 运维 / CLI 用）
仅用于本地 / 内网启动 Flask 服务
"""
import os
import sys
from fleetmaint.logger import get_logger

logger = get_logger("run")


def get_app_base_dir():
    """
    获取程序根目录
    - 开发态：run.py 所在目录
    - PyInstaller：exe 所在目录
    """
    if getattr(sys, "frozen", False):
        return os.path.dirname(sys.executable)
    return os.path.abspath(os.path.dirname(__file__))


def configure_database():
    """
    未显式配置 DATABASE_URL 时，使用程序根目录下的 fleet_maint.db
    """
    if os.getenv("DATABASE_URL"):
        return
    db_path = os.path.join(get_app_base_dir(), "fleet_maint.db")
    os.environ["DATABASE_URL"] = f"sqlite:///{db_path}"#锁死数据库路径，防止打包后路径错乱
    logger.info(f"Using database: {db_path}")


def main():
    # 0️统一数据库路径（必须在 import session 相关模块之前）
    configure_database()

    from fleetmaint.app_factory import create_app
    from fleetmaint.db.auto_init import auto_init

    # 1️启动前初始化数据库
    auto_init()

    # 2️创建 Flask app
    app = create_app()
    logger.info(f"DB URI: {app.config['DATABASE_URL']}")

    # 3️启动参数
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", 5000))
    debug = os.getenv("FLASK_DEBUG", "0") == "1"

    # 4️启动服务
    app.run(host=host, port=port, debug=debug, use_reloader=False)


if __name__ == "__main__":
    main()
