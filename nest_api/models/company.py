from datetime import datetime

from nest_api.extensions import db


class Company(db.Model):
    """Tenant boundary. Branding/address/contact are edited through the settings endpoint."""
    __tablename__ = "companies"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    country_code = db.Column(db.String(2), nullable=True)
    currency = db.Column(db.String(3), nullable=True)

    # branding
    primary_color = db.Column(db.String(16), nullable=True)
    icon = db.Column(db.String(40), nullable=True)
    logo_url = db.Column(db.String(500), nullable=True)

    # address
    address_line1 = db.Column(db.String(255), nullable=True)
    address_line2 = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(120), nullable=True)
    postal_code = db.Column(db.String(20), nullable=True)
    country = db.Column(db.String(120), nullable=True)

    # contact
    contact_email = db.Column(db.String(255), nullable=True)
    contact_phone = db.Column(db.String(40), nullable=True)
    website = db.Column(db.String(255), nullable=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, onupdate=datetime.utcnow)

    def branding(self):
        return {"color": self.primary_color, "icon": self.icon, "logo_url": self.logo_url}


class AccountCompanyRole(db.Model):
    """Membership: per-company role grant linking an Account to a Company."""
    __tablename__ = "account_company_roles"

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    role = db.Column(db.String(20), nullable=False, default="EMPLOYEE")
    is_admin = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("account_id", "company_id", name="uq_account_company_role"),
    )

    account = db.relationship("Account", back_populates="memberships")
    company = db.relationship("Company", lazy="joined")

    def __repr__(self) -> str:
        return f"<AccountCompanyRole account_id={self.account_id} company_id={self.company_id} role={self.role!r}>"
