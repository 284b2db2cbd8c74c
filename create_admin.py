# create_admin.py
"""
创建管理员账号
Manual maintenance helper: python create_admin.py <email> <password> [name]
"""
import sys

from printhub.app_factory import create_app
from printhub.db.init_db import init_db
from printhub.db.session import get_session
from printhub.db.enums import AuditEntityType, UserRole
from printhub.services.user_service import UserService
from printhub.services.audit_log_service import AuditLogService


def create_admin(email: str, password: str, name: str = "Administrator"):
    create_app()  # binds DATABASE_URL
    init_db()

    db = get_session()
    try:
        user_service = UserService(db)
        if user_service.get_user_by_email(email):
            print(f"User '{email}' already exists, skipped")
            return

        user = user_service.create_user(name=name, email=email, password=password, role=UserRole.admin)
        AuditLogService(db).record_create(
            entity_type=AuditEntityType.User,
            entity_id=user.id,
            operator_id=None,
        )
        db.commit()
        print(f"Admin '{email}' created")
    except Exception as e:
        db.rollback()
        print(f"Failed to create admin: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print(__doc__)
        sys.exit(1)
    create_admin(*sys.argv[1:4])
