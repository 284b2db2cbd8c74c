"""
数据库自动初始化检查模块
Run at startup: creates missing tables and makes sure an admin account exists.
"""
import os

from sqlalchemy import inspect

from printhub.db.session import get_engine, get_session
from printhub.db.init_db import init_db
from printhub.db.enums import UserRole
from printhub.models.user import User
from printhub.services.user_service import UserService
from printhub.logger import get_logger

logger = get_logger(__name__)

REQUIRED_TABLES = {"users", "rate_tables", "orders", "print_jobs", "service_statuses", "audit_logs"}

DEFAULT_ADMIN_EMAIL = "admin@printhub.local"
DEFAULT_ADMIN_PASSWORD = "admin123"


def check_tables_exist() -> bool:
    """检查数据库表是否存在"""
    inspector = inspect(get_engine())
    return REQUIRED_TABLES.issubset(set(inspector.get_table_names()))


def check_admin_user_exists() -> bool:
    """检查管理员用户是否存在"""
    db = get_session()
    try:
        return db.query(User).filter(User.role == UserRole.admin).first() is not None
    finally:
        db.close()


def create_admin_user():
    """创建管理员用户"""
    email = os.getenv("ADMIN_EMAIL", DEFAULT_ADMIN_EMAIL)
    password = os.getenv("ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD)

    db = get_session()
    try:
        user_service = UserService(db)
        if user_service.get_user_by_email(email):
            logger.info(f"User {email} already exists, admin not created")
            return

        user_service.create_user(
            name="Administrator",
            email=email,
            password=password,
            role=UserRole.admin,
        )
        db.commit()
        logger.info(f"Admin user created: {email}")
        if password == DEFAULT_ADMIN_PASSWORD:
            logger.warning("Admin uses the default password, change it after first login")
    except Exception:
        db.rollback()
        logger.exception("Failed to create admin user")
        raise
    finally:
        db.close()


def auto_init():
    """
    自动初始化检查
    Create tables and the first admin when they are missing.
    """
    logger.info("Checking database initialisation...")

    if not check_tables_exist():
        logger.info("Creating database tables")
        init_db()
    else:
        logger.info("Database tables present")

    if not check_admin_user_exists():
        logger.info("No admin user, creating one")
        create_admin_user()

    logger.info("Database initialisation check complete")


if __name__ == "__main__":
    auto_init()
