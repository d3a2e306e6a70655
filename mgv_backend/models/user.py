# mgv_backend/models/user.py
from werkzeug.security import check_password_hash, generate_password_hash

from . import db, iso, utcnow

ROLE_CUSTOMER = "customer"
ROLE_ADMIN = "admin"
ROLE_SUPER_ADMIN = "super admin"
ADMIN_ROLES = (ROLE_ADMIN, ROLE_SUPER_ADMIN)
ROLES = (ROLE_CUSTOMER, ROLE_ADMIN, ROLE_SUPER_ADMIN)


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    phone = db.Column(db.String(32), default="")
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(32), nullable=False, default=ROLE_CUSTOMER)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    # password reset token, valid for PASSWORD_RESET_MAX_AGE
    reset_password_token = db.Column(db.String(128), index=True)
    reset_password_expires = db.Column(db.DateTime(timezone=True))

    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<User id={self.id} email={self.email!r} role={self.role!r}>"

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    def set_password(self, raw_password: str) -> None:
        self.password_hash = generate_password_hash(raw_password)

    def check_password(self, raw_password: str) -> bool:
        if not raw_password or not self.password_hash:
            return False
        return check_password_hash(self.password_hash, raw_password)

    def to_brief(self):
        return {"id": self.id, "name": self.name, "email": self.email}

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone or "",
            "role": self.role,
            "is_active": bool(self.is_active),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
