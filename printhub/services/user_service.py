# printhub/services/user_service.py
from uuid import uuid4
from typing import Optional
from datetime import datetime, timezone
import bcrypt
from sqlalchemy.orm import Session

from printhub.models.user import User
from printhub.db.enums import UserRole
from printhub.errors import ValidationError, AuthenticationError, translate_storage_errors

class UserService:
    """
    Minimal identity provider.
    Provides:
    - registration
    - authentication
    - user lookup

    OAuth / OTP / password reset live outside this service.
    """

    def __init__(self, db: Session):
        self.db = db

    # ======================================================
    # 🔐 Internal helpers
    # ======================================================

    def _hash_password(self, password: str) -> str:
        '''Hash a password using bcrypt'''
        return bcrypt.hashpw(
            password.encode("utf-8"),
            bcrypt.gensalt(),
        ).decode("utf-8")

    def _verify_password(self, password: str, password_hash: str) -> bool:
        '''verify a password against its hash'''
        return bcrypt.checkpw(
            password.encode("utf-8"),
            password_hash.encode("utf-8"),
        )

    # ======================================================
    # 👤 User CRUD
    # ======================================================

    @translate_storage_errors
    def create_user(
        self,
        *,
        name: str,
        email: str,
        password: str,
        role: UserRole = UserRole.student,
    ) -> User:
        """
        Register a new user.

        :param name: Display name
        :type name: str
        :param email: Login email (unique, stored lower-case)
        :type email: str
        :param password: Plaintext password
        :type password: str
        :param role: student or admin
        :type role: UserRole
        """
        name = name.strip() if isinstance(name, str) else ""
        email = email.strip().lower() if isinstance(email, str) else ""
        if not name:
            raise ValidationError("name", "Name is required")
        if not email or "@" not in email:
            raise ValidationError("email", "A valid email is required")
        if not isinstance(password, str) or len(password) < 6:
            raise ValidationError("password", "Password must be at least 6 characters")

        # 1️⃣ email uniqueness
        if self.get_user_by_email(email):
            raise ValidationError("email", f"Email '{email}' is already registered")

        # 2️⃣ create
        user = User(
            id=str(uuid4()),
            name=name,
            email=email,
            password_hash=self._hash_password(password),
            role=role,
        )

        self.db.add(user)
        self.db.flush()

        return user

    @translate_storage_errors
    def authenticate(
        self,
        *,
        email: str,
        password: str,
    ) -> User:
        """
        Authenticate user by email + password and stamp last_login.

        :param email: Login email
        :type email: str
        :param password: Plaintext password
        :type password: str
        """
        user = self.get_user_by_email(email)

        if not user or not password:
            raise AuthenticationError("Invalid email or password")

        if not self._verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password")

        user.last_login = datetime.now(timezone.utc)
        return user

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        return (
            self.db.query(User)
            .filter(User.id == user_id)
            .first()
        )

    def get_user_by_email(self, email: str) -> Optional[User]:
        return (
            self.db.query(User)
            .filter(User.email == (email or "").strip().lower())
            .first()
        )
