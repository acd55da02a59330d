'''"组装 Flask App 的工厂"（不启动，不产生行为副作用）
负责注入配置、注册蓝图、注册 error handler，但不负责启动服务（不调用 app.run()）
会被 run.py / gunicorn / 单元测试调用'''
# fleetmaint/app_factory.py
from flask import Flask, jsonify
import os
from dotenv import load_dotenv

from fleetmaint.constants import DEFAULT_TENANT_ID

# 加载环境变量
load_dotenv()

# 获取项目根目录（使用绝对路径）
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def create_app(config_overrides=None):
    """应用工厂函数"""
    app = Flask(__name__)

    # 基础配置
    secret_key = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    if isinstance(secret_key, bytes):
        secret_key = secret_key.decode('utf-8')
    app.config['SECRET_KEY'] = secret_key

    # 数据库配置（使用绝对路径），session.py 从环境变量读取
    db_path = os.path.join(BASE_DIR, 'fleet_maint.db')
    os.environ.setdefault('DATABASE_URL', f"sqlite:///{db_path}")
    app.config['DATABASE_URL'] = os.environ['DATABASE_URL']

    # 租户配置
    app.config['DEFAULT_TENANT_ID'] = os.getenv('DEFAULT_TENANT_ID', DEFAULT_TENANT_ID)

    if config_overrides:
        app.config.update(config_overrides)

    # 注册蓝图
    from fleetmaint.routes.service_order_parts import service_order_parts_bp

    app.register_blueprint(service_order_parts_bp)

    # 注册错误处理
    register_error_handlers(app)

    return app


def register_error_handlers(app):
    """注册错误处理器"""
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'ok': False, 'error_message': 'Not found'}), 404

    @app.errorhandler(500)
    def internal_error(error):
        return jsonify({'ok': False, 'error_message': 'Internal server error'}), 500
