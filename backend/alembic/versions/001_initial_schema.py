"""Create SES Hub schema

Revision ID: 001
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENUMS = {
    'companytype': ('SES', 'CLIENT'),
    'engineertype': ('EMPLOYEE', 'BUSINESS_PARTNER'),
    'engineerstatus': (
        'AVAILABLE', 'WORKING', 'WAITING', 'WAITING_SOON', 'SCHEDULED', 'OTHER', 'RETIRED'
    ),
    'projectstatus': ('PLANNING', 'ACTIVE', 'ON_HOLD', 'COMPLETED'),
    'accesspermissiontype': ('FULL_ACCESS', 'WAITING_ONLY', 'SELECTED_ONLY'),
    'offerstate': ('SENT', 'OPENED', 'PENDING', 'ACCEPTED', 'DECLINED', 'WITHDRAWN'),
    'offerengineerstate': ('SENT', 'OPENED', 'PENDING', 'ACCEPTED', 'DECLINED', 'WITHDRAWN'),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _id() -> sa.Column:
    return sa.Column('id', sa.UUID(), server_default=sa.text('uuidv7()'), nullable=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def _company_owned() -> list[sa.Column]:
    return [
        sa.Column('company_id', sa.UUID(), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('is_deleted', sa.Boolean(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    ]


def _company_indexes(table: str) -> None:
    op.create_index(f'ix_{table}_id', table, ['id'], unique=False)
    op.create_index(f'ix_{table}_company_id', table, ['company_id'], unique=False)
    op.create_index(f'ix_{table}_is_deleted', table, ['is_deleted'], unique=False)


def upgrade() -> None:
    """Create every SES Hub table from scratch."""

    # uuidv7() is built in from PostgreSQL 18
    for name, values in ENUMS.items():
        labels = ', '.join(f"'{v}'" for v in values)
        op.execute(
            f"DO $$ BEGIN CREATE TYPE {name} AS ENUM ({labels}); "
            "EXCEPTION WHEN duplicate_object THEN null; END $$;"
        )

    op.create_table('companies',
        _id(),
        sa.Column('company_type', _enum('companytype'), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email_domain', sa.String(length=255), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('website_url', sa.String(length=255), nullable=True),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
        sa.Column('max_engineers', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.Column('is_deleted', sa.Boolean(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_companies_id', 'companies', ['id'], unique=False)
    op.create_index('ix_companies_is_deleted', 'companies', ['is_deleted'], unique=False)
    op.create_index('idx_company_type_active', 'companies', ['company_type', 'is_active'], unique=False)

    op.create_table('users',
        _id(),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        *_company_owned(),
        sa.PrimaryKeyConstraint('id')
    )
    _company_indexes('users')
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # RBAC catalog
    op.create_table('roles',
        _id(),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('display_name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_system', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )
    op.create_index('ix_roles_id', 'roles', ['id'], unique=False)

    op.create_table('permissions',
        _id(),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('display_name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('resource', sa.String(length=50), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('scope', sa.String(length=50), nullable=True),
        sa.Column('is_system', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )
    op.create_index('ix_permissions_id', 'permissions', ['id'], unique=False)
    op.create_index('ix_permissions_resource', 'permissions', ['resource'], unique=False)

    op.create_table('role_permissions',
        sa.Column('role_id', sa.UUID(), nullable=False),
        sa.Column('permission_id', sa.UUID(), nullable=False),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['permission_id'], ['permissions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('role_id', 'permission_id')
    )

    op.create_table('user_roles',
        _id(),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('role_id', sa.UUID(), nullable=False),
        sa.Column('granted_by', sa.UUID(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'role_id', name='uq_user_role')
    )
    op.create_index('ix_user_roles_id', 'user_roles', ['id'], unique=False)
    op.create_index('ix_user_roles_user_id', 'user_roles', ['user_id'], unique=False)

    # Engineers and skill sheets
    op.create_table('engineers',
        _id(),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name_kana', sa.String(length=100), nullable=True),
        sa.Column('first_name_kana', sa.String(length=100), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('gender', sa.String(length=20), nullable=True),
        sa.Column('birth_date', sa.Date(), nullable=True),
        sa.Column('years_of_experience', sa.Integer(), nullable=True),
        sa.Column('engineer_type', _enum('engineertype'), nullable=False),
        sa.Column('contract_type', sa.String(length=50), nullable=True),
        sa.Column('current_status', _enum('engineerstatus'), nullable=False),
        sa.Column('available_date', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('monthly_unit_price', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('nearest_station', sa.String(length=100), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        *_timestamps(),
        *_company_owned(),
        sa.PrimaryKeyConstraint('id')
    )
    _company_indexes('engineers')
    op.create_index('ix_engineers_email', 'engineers', ['email'], unique=False)
    op.create_index('idx_engineer_company_status', 'engineers', ['company_id', 'current_status'], unique=False)

    op.create_table('skill_sheets',
        _id(),
        sa.Column('engineer_id', sa.UUID(), nullable=False),
        sa.Column('self_introduction', sa.Text(), nullable=True),
        sa.Column('specialization', sa.String(length=255), nullable=True),
        sa.Column('qualification', sa.Text(), nullable=True),
        sa.Column('programming_languages', sa.JSON(), nullable=False),
        sa.Column('frameworks', sa.JSON(), nullable=False),
        sa.Column('databases', sa.JSON(), nullable=False),
        sa.Column('tools', sa.JSON(), nullable=False),
        sa.Column('cloud_services', sa.JSON(), nullable=False),
        sa.Column('languages', sa.JSON(), nullable=False),
        sa.Column('career_summary', sa.Text(), nullable=True),
        sa.Column('special_skills', sa.Text(), nullable=True),
        sa.Column('is_completed', sa.Boolean(), nullable=False),
        *_timestamps(),
        *_company_owned(),
        sa.ForeignKeyConstraint(['engineer_id'], ['engineers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('engineer_id')
    )
    _company_indexes('skill_sheets')

    op.create_table('projects',
        _id(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('client_company', sa.String(length=255), nullable=True),
        sa.Column('status', _enum('projectstatus'), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('contract_type', sa.String(length=50), nullable=True),
        sa.Column('monthly_rate', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('required_engineers', sa.Integer(), nullable=False),
        sa.Column('required_skills', sa.JSON(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('industry', sa.String(length=100), nullable=True),
        *_timestamps(),
        *_company_owned(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('company_id', 'name', name='uq_project_company_name')
    )
    _company_indexes('projects')

    # Business partners and engineer visibility
    op.create_table('business_partners',
        _id(),
        sa.Column('client_company_id', sa.UUID(), nullable=False),
        sa.Column('access_url', sa.String(length=255), nullable=True),
        sa.Column('url_token', sa.String(length=64), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.UUID(), nullable=True),
        *_timestamps(),
        *_company_owned(),
        sa.ForeignKeyConstraint(['client_company_id'], ['companies.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('url_token'),
        sa.UniqueConstraint('company_id', 'client_company_id', name='uq_business_partner_pair')
    )
    _company_indexes('business_partners')
    op.create_index('ix_business_partners_client_company_id', 'business_partners', ['client_company_id'], unique=False)

    op.create_table('client_access_permissions',
        _id(),
        sa.Column('business_partner_id', sa.UUID(), nullable=False),
        sa.Column('engineer_id', sa.UUID(), nullable=True),
        sa.Column('permission_type', _enum('accesspermissiontype'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.UUID(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['business_partner_id'], ['business_partners.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['engineer_id'], ['engineers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_client_access_permissions_id', 'client_access_permissions', ['id'], unique=False)
    op.create_index(
        'idx_access_permission_partner_active',
        'client_access_permissions',
        ['business_partner_id', 'is_active'],
        unique=False,
    )

    op.create_table('engineer_ng_lists',
        _id(),
        sa.Column('business_partner_id', sa.UUID(), nullable=False),
        sa.Column('engineer_id', sa.UUID(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('created_by', sa.UUID(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['business_partner_id'], ['business_partners.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['engineer_id'], ['engineers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('business_partner_id', 'engineer_id', name='uq_engineer_ng_list_pair')
    )
    op.create_index('ix_engineer_ng_lists_id', 'engineer_ng_lists', ['id'], unique=False)
    op.create_index('ix_engineer_ng_lists_business_partner_id', 'engineer_ng_lists', ['business_partner_id'], unique=False)

    # Client users
    op.create_table('client_users',
        _id(),
        sa.Column('business_partner_id', sa.UUID(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('department', sa.String(length=100), nullable=True),
        sa.Column('position', sa.String(length=100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('failed_login_count', sa.Integer(), nullable=False),
        sa.Column('account_locked_until', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        *_company_owned(),
        sa.ForeignKeyConstraint(['business_partner_id'], ['business_partners.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    _company_indexes('client_users')
    op.create_index('ix_client_users_email', 'client_users', ['email'], unique=True)
    op.create_index('ix_client_users_business_partner_id', 'client_users', ['business_partner_id'], unique=False)

    op.create_table('client_user_roles',
        _id(),
        sa.Column('client_user_id', sa.UUID(), nullable=False),
        sa.Column('role_id', sa.UUID(), nullable=False),
        sa.Column('granted_by', sa.UUID(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['client_user_id'], ['client_users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('client_user_id', 'role_id', name='uq_client_user_role')
    )
    op.create_index('ix_client_user_roles_id', 'client_user_roles', ['id'], unique=False)
    op.create_index('ix_client_user_roles_client_user_id', 'client_user_roles', ['client_user_id'], unique=False)

    op.create_table('client_view_logs',
        _id(),
        sa.Column('client_user_id', sa.UUID(), nullable=False),
        sa.Column('engineer_id', sa.UUID(), nullable=True),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['client_user_id'], ['client_users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['engineer_id'], ['engineers.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_client_view_logs_id', 'client_view_logs', ['id'], unique=False)
    op.create_index('ix_client_view_logs_client_user_id', 'client_view_logs', ['client_user_id'], unique=False)

    # Offers
    op.create_table('offers',
        _id(),
        sa.Column('offer_number', sa.String(length=20), nullable=False),
        sa.Column('ses_company_id', sa.UUID(), nullable=False),
        sa.Column('business_partner_id', sa.UUID(), nullable=False),
        sa.Column('status', _enum('offerstate'), nullable=False),
        sa.Column('project_name', sa.String(length=255), nullable=False),
        sa.Column('project_period_start', sa.Date(), nullable=False),
        sa.Column('project_period_end', sa.Date(), nullable=False),
        sa.Column('required_skills', sa.JSON(), nullable=False),
        sa.Column('project_description', sa.Text(), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('rate_min', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('rate_max', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('opened_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reminder_sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reminder_count', sa.Integer(), nullable=False),
        sa.Column('created_by', sa.UUID(), nullable=False),
        *_timestamps(),
        *_company_owned(),
        sa.ForeignKeyConstraint(['ses_company_id'], ['companies.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['business_partner_id'], ['business_partners.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('offer_number')
    )
    _company_indexes('offers')
    op.create_index('ix_offers_ses_company_id', 'offers', ['ses_company_id'], unique=False)
    op.create_index('idx_offer_company_sent_at', 'offers', ['company_id', 'sent_at'], unique=False)

    op.create_table('offer_engineers',
        _id(),
        sa.Column('offer_id', sa.UUID(), nullable=False),
        sa.Column('engineer_id', sa.UUID(), nullable=False),
        sa.Column('individual_status', _enum('offerengineerstate'), nullable=False),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('response_comment', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['offer_id'], ['offers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['engineer_id'], ['engineers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('offer_id', 'engineer_id', name='uq_offer_engineer')
    )
    op.create_index('ix_offer_engineers_id', 'offer_engineers', ['id'], unique=False)
    op.create_index('ix_offer_engineers_offer_id', 'offer_engineers', ['offer_id'], unique=False)
    op.create_index('ix_offer_engineers_engineer_id', 'offer_engineers', ['engineer_id'], unique=False)


def downgrade() -> None:
    """Drop the SES Hub schema."""
    for table in (
        'offer_engineers',
        'offers',
        'client_view_logs',
        'client_user_roles',
        'client_users',
        'engineer_ng_lists',
        'client_access_permissions',
        'business_partners',
        'projects',
        'skill_sheets',
        'engineers',
        'user_roles',
        'role_permissions',
        'permissions',
        'roles',
        'users',
        'companies',
    ):
        op.drop_table(table)

    for name in reversed(list(ENUMS)):
        op.execute(f"DROP TYPE IF EXISTS {name}")
