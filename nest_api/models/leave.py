from datetime import datetime
from nest_api.extensions import db

LEAVE_STATUSES = ("DRAFT", "SUBMITTED", "APPROVED", "REJECTED", "CANCELLED")

class LeavePolicy(db.Model):
    __tablename__ = "leave_policies"
    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    code = db.Column(db.String(20), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    unit = db.Column(db.String(10), nullable=False, default="DAYS")  # DAYS|HOURS
    carry_over_max = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("company_id", "code", name="uq_leave_policy_company_code"),
    )

class LeaveRequest(db.Model):
    __tablename__ = "leave_requests"
    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    leave_policy_id = db.Column(db.Integer, db.ForeignKey("leave_policies.id", ondelete="RESTRICT"), nullable=True)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    days_requested = db.Column(db.Numeric(5, 2), nullable=False)
    reason = db.Column(db.Text)
    status = db.Column(db.String(20), nullable=False, default="SUBMITTED")

    approved_by_account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"))
    approved_at = db.Column(db.DateTime)
    decision_notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, onupdate=datetime.utcnow)

    employee = db.relationship("Employee", lazy="joined")
    policy = db.relationship("LeavePolicy", lazy="joined")
