from datetime import datetime
from nest_api.extensions import db

PAYROLL_STATUSES = ("UPLOADED", "APPROVED", "ARCHIVED")

# allowed forward moves; anything else is rejected with 409
PAYROLL_TRANSITIONS = {
    "UPLOADED": {"APPROVED", "ARCHIVED"},
    "APPROVED": {"ARCHIVED"},
    "ARCHIVED": set(),
}

class PayrollCycle(db.Model):
    __tablename__ = "payroll_cycles"

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    month = db.Column(db.Integer, nullable=False)
    year = db.Column(db.Integer, nullable=False)
    document_url = db.Column(db.String(500))
    notes = db.Column(db.Text)
    status = db.Column(db.String(20), nullable=False, default="UPLOADED")

    created_by_account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("company_id", "month", "year", name="uq_payroll_cycle_company_period"),
    )
