"""Initial migration - create all tables

Revision ID: 001_initial
Revises:
Create Date: 2026-10-16

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Strava connections
    op.create_table(
        'strava_connections',
        sa.Column('athlete_id', sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column('refresh_token', sa.Text(), nullable=False),
        sa.Column('access_token', sa.Text(), nullable=True),
        sa.Column('expires_at', sa.BigInteger(), nullable=True),
        sa.Column('athlete_firstname', sa.String(100), nullable=True),
        sa.Column('athlete_lastname', sa.String(100), nullable=True),
        sa.Column('slack_user_id', sa.String(32), nullable=True),
        sa.Column('verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('verification_token', sa.String(64), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        'ix_strava_connections_verification_token',
        'strava_connections',
        ['verification_token'],
    )

    # Strava dedupe set
    op.create_table(
        'posted_activities',
        sa.Column('activity_id', sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column('athlete_id', sa.BigInteger(), nullable=True),
        sa.Column('posted_at', sa.DateTime(timezone=True), nullable=True),
    )

    # Events held until the athlete verifies Slack
    op.create_table(
        'pending_activities',
        sa.Column('activity_id', sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column('athlete_id', sa.BigInteger(), nullable=False),
        sa.Column('received_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_pending_activities_athlete_id', 'pending_activities', ['athlete_id'])

    # Standalone Slack verification
    op.create_table(
        'verified_slack_users',
        sa.Column('slack_user_id', sa.String(32), primary_key=True),
        sa.Column('verification_token', sa.String(64), nullable=True),
        sa.Column('verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        'ix_verified_slack_users_verification_token',
        'verified_slack_users',
        ['verification_token'],
    )

    # Peloton connections
    op.create_table(
        'peloton_connections',
        sa.Column('peloton_user_id', sa.String(64), primary_key=True),
        sa.Column('session_id', sa.Text(), nullable=True),
        sa.Column('username', sa.String(100), nullable=True),
        sa.Column('slack_user_id', sa.String(32), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        'ix_peloton_connections_slack_user_id',
        'peloton_connections',
        ['slack_user_id'],
    )

    # Peloton dedupe set
    op.create_table(
        'posted_workouts',
        sa.Column('workout_id', sa.String(64), primary_key=True),
        sa.Column('slack_user_id', sa.String(32), nullable=True),
        sa.Column('posted_at', sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    op.drop_table('posted_workouts')
    op.drop_index('ix_peloton_connections_slack_user_id', table_name='peloton_connections')
    op.drop_table('peloton_connections')
    op.drop_index(
        'ix_verified_slack_users_verification_token', table_name='verified_slack_users'
    )
    op.drop_table('verified_slack_users')
    op.drop_index('ix_pending_activities_athlete_id', table_name='pending_activities')
    op.drop_table('pending_activities')
    op.drop_table('posted_activities')
    op.drop_index(
        'ix_strava_connections_verification_token', table_name='strava_connections'
    )
    op.drop_table('strava_connections')
