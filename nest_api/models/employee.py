from datetime import datetime
from nest_api.extensions import db

EMPLOYMENT_TYPES = ("FULL_TIME", "PART_TIME", "CONTRACTOR", "INTERN")
SALARY_PERIODS   = ("HOURLY", "WEEKLY", "BIWEEKLY", "MONTHLY", "YEARLY")
EMPLOYEE_STATUSES = ("ACTIVE", "INACTIVE", "TERMINATED", "ON_LEAVE")

class Employee(db.Model):
    __tablename__ = "employees"

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    manager_id = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="SET NULL"), nullable=True)

    first_name = db.Column(db.String(80), nullable=False)
    last_name  = db.Column(db.String(80), nullable=False)
    email      = db.Column(db.String(255), nullable=False)
    phone      = db.Column(db.String(40), nullable=True)

    position_title = db.Column(db.String(120), nullable=False)
    department     = db.Column(db.String(120), nullable=True)
    hire_date      = db.Column(db.Date, nullable=True)
    employment_type = db.Column(db.String(20), nullable=False, default="FULL_TIME")
    base_salary    = db.Column(db.Numeric(14, 2), nullable=True)
    salary_period  = db.Column(db.String(20), nullable=False, default="MONTHLY")
    status         = db.Column(db.String(16), nullable=False, default="ACTIVE")
    onboarding_completed = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, onupdate=datetime.utcnow)

    __table_args__ = (
        # at most one employee record per account per company
        db.UniqueConstraint("company_id", "account_id", name="uq_employee_company_account"),
        db.Index("ix_emp_company_id", "company_id"),
        db.Index("ix_emp_manager_id", "manager_id"),
    )

    company = db.relationship("Company", lazy="joined")
    account = db.relationship("Account", lazy="joined")
    manager = db.relationship("Employee", remote_side=[id], lazy="select")

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_active(self):
        return self.status == "ACTIVE"
