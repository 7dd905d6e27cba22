from datetime import datetime
from nest_api.extensions import db

TIMESHEET_STATUSES = ("DRAFT", "SUBMITTED", "APPROVED", "REJECTED")

class Timesheet(db.Model):
    __tablename__ = "timesheets"
    id = db.Column(db.Integer, primary_key=True)
    company_id  = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    week_start  = db.Column(db.Date, nullable=False)
    status      = db.Column(db.String(20), nullable=False, default="DRAFT")
    total_hours = db.Column(db.Numeric(6, 2), nullable=False, default=0)
    notes       = db.Column(db.Text)

    submitted_at = db.Column(db.DateTime)
    approved_by_account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"))
    approved_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("employee_id", "week_start", name="uq_timesheet_employee_week"),
    )

    employee = db.relationship("Employee", lazy="joined")
    entries = db.relationship(
        "TimesheetEntry",
        back_populates="timesheet",
        cascade="all, delete-orphan",
        order_by="TimesheetEntry.date",
    )

class TimesheetEntry(db.Model):
    __tablename__ = "timesheet_entries"
    id = db.Column(db.Integer, primary_key=True)
    timesheet_id = db.Column(db.Integer, db.ForeignKey("timesheets.id", ondelete="CASCADE"), nullable=False, index=True)
    date    = db.Column(db.Date, nullable=False)
    project = db.Column(db.String(120))
    hours   = db.Column(db.Numeric(5, 2), nullable=False)
    notes   = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    timesheet = db.relationship("Timesheet", back_populates="entries")
