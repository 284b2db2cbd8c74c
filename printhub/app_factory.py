'''Flask application factory.
Assembles the app (config, server side session, blueprints, error handlers)
without starting it; used by run.py, WSGI servers and the tests.'''
# printhub/app_factory.py
from flask import Flask, jsonify
from flask_session import Session
from werkzeug.exceptions import HTTPException
import os
from dotenv import load_dotenv

from printhub.db.session import configure_engine
from printhub.errors import PrintHubError, GENERIC_FAILURE_MESSAGE
from printhub.logger import get_logger

# 加载环境变量
load_dotenv()

logger = get_logger(__name__)

# 项目根目录（绝对路径）
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def create_app(config_overrides=None):
    """应用工厂函数"""
    app = Flask(__name__)

    # 基础配置
    app.config['SECRET_KEY'] = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    app.config['ADMIN_KEY'] = os.getenv('ADMIN_KEY')

    # 数据库配置
    db_path = os.path.join(BASE_DIR, 'printhub.db')
    app.config['DATABASE_URL'] = os.getenv('DATABASE_URL', f"sqlite:///{db_path}")

    # Session 配置
    app.config['SESSION_TYPE'] = 'filesystem'
    app.config['SESSION_PERMANENT'] = False
    app.config['SESSION_USE_SIGNER'] = True
    app.config['SESSION_KEY_PREFIX'] = 'printhub:'
    app.config['SESSION_FILE_DIR'] = os.getenv('SESSION_FILE_DIR', os.path.join(BASE_DIR, 'flask_session'))

    # 邮件配置
    app.config['MAIL_SERVER'] = os.getenv('MAIL_SERVER')
    app.config['MAIL_PORT'] = int(os.getenv('MAIL_PORT', 587))
    app.config['MAIL_USERNAME'] = os.getenv('MAIL_USERNAME')
    app.config['MAIL_PASSWORD'] = os.getenv('MAIL_PASSWORD')
    app.config['MAIL_USE_TLS'] = _env_flag('MAIL_USE_TLS', True)
    app.config['MAIL_SENDER'] = os.getenv('MAIL_SENDER')
    app.config['MAIL_ENABLED'] = _env_flag('MAIL_ENABLED', False)

    # 下单时按当前价格复核总价
    app.config['VERIFY_ORDER_TOTAL'] = _env_flag('VERIFY_ORDER_TOTAL', False)

    if config_overrides:
        app.config.update(config_overrides)

    os.makedirs(app.config['SESSION_FILE_DIR'], exist_ok=True)
    configure_engine(app.config['DATABASE_URL'])

    # 初始化 Session
    Session(app)

    # 注册蓝图
    from printhub.routes.auth import auth_bp
    from printhub.routes.pricing import pricing_bp
    from printhub.routes.orders import orders_bp
    from printhub.routes.print_jobs import print_jobs_bp
    from printhub.routes.service_status import service_status_bp
    from printhub.routes.admin import admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(pricing_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(print_jobs_bp)
    app.register_blueprint(service_status_bp)
    app.register_blueprint(admin_bp)

    # 注册错误处理
    register_error_handlers(app)

    return app


def register_error_handlers(app):
    """注册错误处理器, every error leaves as JSON"""

    @app.errorhandler(PrintHubError)
    def handle_printhub_error(error):
        if error.status_code >= 500:
            logger.error(f"{type(error).__name__}: {error}")
        return jsonify(error.to_payload()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        return jsonify({"message": error.description, "error": error.name}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        logger.exception(f"Unhandled error: {error}")
        return jsonify({"message": GENERIC_FAILURE_MESSAGE, "error": "INTERNAL_ERROR"}), 500
