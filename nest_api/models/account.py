import uuid
from datetime import datetime

from werkzeug.security import generate_password_hash, check_password_hash

from nest_api.extensions import db

ACCOUNT_ROLES = ("OWNER", "ADMIN", "HR", "MANAGER", "EMPLOYEE")


class Account(db.Model):
    """
    Identity record tied 1:1 to an auth subject (the JWT ``sub``).
    Accounts are never deleted, only deactivated.
    """
    __tablename__ = "accounts"

    id            = db.Column(db.Integer, primary_key=True)
    auth_user_id  = db.Column(db.String(64), unique=True, index=True, nullable=False,
                              default=lambda: str(uuid.uuid4()))
    email         = db.Column(db.String(255), unique=True, index=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=True)
    first_name    = db.Column(db.String(80), nullable=False, default="")
    last_name     = db.Column(db.String(80), nullable=False, default="")
    role          = db.Column(db.String(20), nullable=False, default="EMPLOYEE")  # global role; per-company role lives on memberships
    is_superuser  = db.Column(db.Boolean, nullable=False, default=False)
    is_active     = db.Column(db.Boolean, nullable=False, default=True)

    # server-side "current company" pointer
    current_company_id = db.Column(db.Integer, db.ForeignKey("companies.id", ondelete="SET NULL"), nullable=True)

    last_login = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, onupdate=datetime.utcnow)

    current_company = db.relationship("Company", foreign_keys=[current_company_id])
    memberships = db.relationship(
        "AccountCompanyRole",
        back_populates="account",
        cascade="all, delete-orphan",
        order_by="AccountCompanyRole.id",
    )

    # --- helpers ---
    def set_password(self, raw: str):
        self.password_hash = generate_password_hash(raw)

    def check_password(self, raw: str) -> bool:
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, raw)

    @property
    def full_name(self):
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def __repr__(self) -> str:
        return f"<Account id={self.id} email={self.email!r}>"
