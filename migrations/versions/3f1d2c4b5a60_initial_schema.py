"""initial schema: accounts, companies, memberships, employees, timesheets, leave, payroll, audit

Revision ID: 3f1d2c4b5a60
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1d2c4b5a60'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'companies',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('country_code', sa.String(2)),
        sa.Column('currency', sa.String(3)),
        sa.Column('primary_color', sa.String(16)),
        sa.Column('icon', sa.String(40)),
        sa.Column('logo_url', sa.String(500)),
        sa.Column('address_line1', sa.String(255)),
        sa.Column('address_line2', sa.String(255)),
        sa.Column('city', sa.String(120)),
        sa.Column('postal_code', sa.String(20)),
        sa.Column('country', sa.String(120)),
        sa.Column('contact_email', sa.String(255)),
        sa.Column('contact_phone', sa.String(40)),
        sa.Column('website', sa.String(255)),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime()),
    )

    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('auth_user_id', sa.String(64), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255)),
        sa.Column('first_name', sa.String(80), nullable=False, server_default=''),
        sa.Column('last_name', sa.String(80), nullable=False, server_default=''),
        sa.Column('role', sa.String(20), nullable=False, server_default='EMPLOYEE'),
        sa.Column('is_superuser', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('current_company_id', sa.Integer(), sa.ForeignKey('companies.id', ondelete='SET NULL')),
        sa.Column('last_login', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime()),
    )
    op.create_index('ix_accounts_auth_user_id', 'accounts', ['auth_user_id'], unique=True)
    op.create_index('ix_accounts_email', 'accounts', ['email'], unique=True)

    op.create_table(
        'account_company_roles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='EMPLOYEE'),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('account_id', 'company_id', name='uq_account_company_role'),
    )
    op.create_index('ix_account_company_roles_account_id', 'account_company_roles', ['account_id'])
    op.create_index('ix_account_company_roles_company_id', 'account_company_roles', ['company_id'])

    op.create_table(
        'employees',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('accounts.id', ondelete='SET NULL')),
        sa.Column('manager_id', sa.Integer(), sa.ForeignKey('employees.id', ondelete='SET NULL')),
        sa.Column('first_name', sa.String(80), nullable=False),
        sa.Column('last_name', sa.String(80), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(40)),
        sa.Column('position_title', sa.String(120), nullable=False),
        sa.Column('department', sa.String(120)),
        sa.Column('hire_date', sa.Date()),
        sa.Column('employment_type', sa.String(20), nullable=False, server_default='FULL_TIME'),
        sa.Column('base_salary', sa.Numeric(14, 2)),
        sa.Column('salary_period', sa.String(20), nullable=False, server_default='MONTHLY'),
        sa.Column('status', sa.String(16), nullable=False, server_default='ACTIVE'),
        sa.Column('onboarding_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime()),
        sa.UniqueConstraint('company_id', 'account_id', name='uq_employee_company_account'),
    )
    op.create_index('ix_emp_company_id', 'employees', ['company_id'])
    op.create_index('ix_emp_manager_id', 'employees', ['manager_id'])

    op.create_table(
        'leave_policies',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('code', sa.String(20), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('unit', sa.String(10), nullable=False, server_default='DAYS'),
        sa.Column('carry_over_max', sa.Numeric(5, 2), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime()),
        sa.UniqueConstraint('company_id', 'code', name='uq_leave_policy_company_code'),
    )
    op.create_index('ix_leave_policies_company_id', 'leave_policies', ['company_id'])

    op.create_table(
        'timesheets',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('employee_id', sa.Integer(), sa.ForeignKey('employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('week_start', sa.Date(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='DRAFT'),
        sa.Column('total_hours', sa.Numeric(6, 2), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text()),
        sa.Column('submitted_at', sa.DateTime()),
        sa.Column('approved_by_account_id', sa.Integer(), sa.ForeignKey('accounts.id')),
        sa.Column('approved_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime()),
        sa.UniqueConstraint('employee_id', 'week_start', name='uq_timesheet_employee_week'),
    )
    op.create_index('ix_timesheets_company_id', 'timesheets', ['company_id'])
    op.create_index('ix_timesheets_employee_id', 'timesheets', ['employee_id'])

    op.create_table(
        'timesheet_entries',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('timesheet_id', sa.Integer(), sa.ForeignKey('timesheets.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('project', sa.String(120)),
        sa.Column('hours', sa.Numeric(5, 2), nullable=False),
        sa.Column('notes', sa.Text()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_timesheet_entries_timesheet_id', 'timesheet_entries', ['timesheet_id'])

    op.create_table(
        'leave_requests',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('employee_id', sa.Integer(), sa.ForeignKey('employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('leave_policy_id', sa.Integer(), sa.ForeignKey('leave_policies.id', ondelete='RESTRICT')),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('days_requested', sa.Numeric(5, 2), nullable=False),
        sa.Column('reason', sa.Text()),
        sa.Column('status', sa.String(20), nullable=False, server_default='SUBMITTED'),
        sa.Column('approved_by_account_id', sa.Integer(), sa.ForeignKey('accounts.id')),
        sa.Column('approved_at', sa.DateTime()),
        sa.Column('decision_notes', sa.Text()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime()),
    )
    op.create_index('ix_leave_requests_company_id', 'leave_requests', ['company_id'])
    op.create_index('ix_leave_requests_employee_id', 'leave_requests', ['employee_id'])

    op.create_table(
        'payroll_cycles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('document_url', sa.String(500)),
        sa.Column('notes', sa.Text()),
        sa.Column('status', sa.String(20), nullable=False, server_default='UPLOADED'),
        sa.Column('created_by_account_id', sa.Integer(), sa.ForeignKey('accounts.id')),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime()),
        sa.UniqueConstraint('company_id', 'month', 'year', name='uq_payroll_cycle_company_period'),
    )
    op.create_index('ix_payroll_cycles_company_id', 'payroll_cycles', ['company_id'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id', ondelete='SET NULL')),
        sa.Column('entity_type', sa.String(40), nullable=False),
        sa.Column('entity_id', sa.String(64)),
        sa.Column('action', sa.String(40), nullable=False),
        sa.Column('actor_id', sa.Integer(), sa.ForeignKey('accounts.id', ondelete='SET NULL')),
        sa.Column('actor_email', sa.String(255)),
        sa.Column('old_values', sa.JSON()),
        sa.Column('new_values', sa.JSON()),
        sa.Column('ip_address', sa.String(64)),
        sa.Column('user_agent', sa.String(255)),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_audit_logs_company_id', 'audit_logs', ['company_id'])
    op.create_index('ix_audit_logs_entity_type', 'audit_logs', ['entity_type'])
    op.create_index('ix_audit_logs_created_at', 'audit_logs', ['created_at'])


def downgrade() -> None:
    for table in (
        'audit_logs', 'payroll_cycles', 'leave_requests', 'timesheet_entries', 'timesheets',
        'leave_policies', 'employees', 'account_company_roles', 'accounts', 'companies',
    ):
        op.drop_table(table)
