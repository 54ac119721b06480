"""Initial schema

Revision ID: 001
Revises: 
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table('users',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('username', sa.String(), nullable=False),
                    sa.Column('email', sa.String(), nullable=False),
                    sa.Column('is_verified', sa.Boolean(), nullable=True),
                    sa.Column('about', sa.Text(), nullable=True),
                    sa.Column('profile_picture', sa.String(), nullable=True),
                    sa.Column('followers_count', sa.Integer(),
                              nullable=False, server_default='0'),
                    sa.Column('following_count', sa.Integer(),
                              nullable=False, server_default='0'),
                    sa.Column('created_at', sa.DateTime(timezone=True),
                              server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
                    sa.Column('updated_at', sa.DateTime(
                        timezone=True), nullable=True),
                    sa.CheckConstraint('followers_count >= 0',
                                       name='ck_users_followers_count_non_negative'),
                    sa.CheckConstraint('following_count >= 0',
                                       name='ck_users_following_count_non_negative'),
                    sa.PrimaryKeyConstraint('id')
                    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)

    op.create_table('otp_codes',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('user_id', sa.Integer(), nullable=False),
                    sa.Column('code', sa.String(length=6), nullable=False),
                    sa.Column('is_used', sa.Boolean(), nullable=True),
                    sa.Column('expires_at', sa.DateTime(
                        timezone=True), nullable=False),
                    sa.Column('created_at', sa.DateTime(timezone=True),
                              server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
                    sa.ForeignKeyConstraint(['user_id'], ['users.id']),
                    sa.PrimaryKeyConstraint('id')
                    )
    op.create_index(op.f('ix_otp_codes_id'), 'otp_codes', ['id'], unique=False)
    op.create_index(op.f('ix_otp_codes_user_id'),
                    'otp_codes', ['user_id'], unique=False)

    op.create_table('follows',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('follower_id', sa.Integer(), nullable=False),
                    sa.Column('following_id', sa.Integer(), nullable=False),
                    sa.Column('created_at', sa.DateTime(timezone=True),
                              server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
                    sa.CheckConstraint('follower_id <> following_id',
                                       name='ck_follows_no_self'),
                    sa.ForeignKeyConstraint(['follower_id'], ['users.id']),
                    sa.ForeignKeyConstraint(['following_id'], ['users.id']),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('follower_id', 'following_id',
                                        name='uq_follows_pair')
                    )
    op.create_index(op.f('ix_follows_id'), 'follows', ['id'], unique=False)
    op.create_index(op.f('ix_follows_follower_id'),
                    'follows', ['follower_id'], unique=False)
    op.create_index(op.f('ix_follows_following_id'),
                    'follows', ['following_id'], unique=False)

    op.create_table('languages',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('name', sa.String(), nullable=False),
                    sa.Column('code', sa.String(), nullable=False),
                    sa.Column('created_at', sa.DateTime(timezone=True),
                              server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('name'),
                    sa.UniqueConstraint('code')
                    )
    op.create_index(op.f('ix_languages_id'), 'languages', ['id'], unique=False)

    op.create_table('categories',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('name', sa.String(), nullable=False),
                    sa.Column('created_at', sa.DateTime(timezone=True),
                              server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('name')
                    )
    op.create_index(op.f('ix_categories_id'),
                    'categories', ['id'], unique=False)

    op.create_table('series',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('title', sa.String(), nullable=False),
                    sa.Column('description', sa.Text(), nullable=True),
                    sa.Column('creator_id', sa.Integer(), nullable=False),
                    sa.Column('tags', sa.JSON(), nullable=False),
                    sa.Column('language_id', sa.Integer(), nullable=False),
                    sa.Column('category', sa.String(), nullable=True),
                    sa.Column('thumbnail_url', sa.String(), nullable=True),
                    sa.Column('trailer_url', sa.String(), nullable=True),
                    sa.Column('release_year', sa.Integer(), nullable=True),
                    sa.Column('total_seasons', sa.Integer(), nullable=False),
                    sa.Column('total_episodes', sa.Integer(), nullable=False),
                    sa.Column('is_subscription', sa.Boolean(), nullable=True),
                    sa.Column('created_at', sa.DateTime(timezone=True),
                              server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
                    sa.ForeignKeyConstraint(['creator_id'], ['users.id']),
                    sa.ForeignKeyConstraint(['language_id'], ['languages.id']),
                    sa.PrimaryKeyConstraint('id')
                    )
    op.create_index(op.f('ix_series_id'), 'series', ['id'], unique=False)
    op.create_index(op.f('ix_series_creator_id'),
                    'series', ['creator_id'], unique=False)

    op.create_table('contents',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('type', sa.String(), nullable=False),
                    sa.Column('content_type', sa.String(), nullable=False),
                    sa.Column('title', sa.String(), nullable=False),
                    sa.Column('description', sa.Text(), nullable=True),
                    sa.Column('creator_id', sa.Integer(), nullable=False),
                    sa.Column('duration', sa.String(), nullable=True),
                    sa.Column('url', sa.String(), nullable=False),
                    sa.Column('thumbnail_url', sa.String(), nullable=True),
                    sa.Column('trailer_url', sa.String(), nullable=True),
                    sa.Column('tags', sa.JSON(), nullable=False),
                    sa.Column('view_count', sa.Integer(), nullable=False),
                    sa.Column('like_count', sa.Integer(), nullable=False),
                    sa.Column('dislike_count', sa.Integer(), nullable=False),
                    sa.Column('is_subscription', sa.Boolean(), nullable=True),
                    sa.Column('language_id', sa.Integer(), nullable=False),
                    sa.Column('category', sa.String(), nullable=False),
                    sa.Column('series_id', sa.Integer(), nullable=True),
                    sa.Column('season_number', sa.Integer(), nullable=True),
                    sa.Column('episode_number', sa.Integer(), nullable=True),
                    sa.Column('release_year', sa.Integer(), nullable=True),
                    sa.Column('created_at', sa.DateTime(timezone=True),
                              server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
                    sa.CheckConstraint('like_count >= 0',
                                       name='ck_contents_like_count_non_negative'),
                    sa.CheckConstraint('dislike_count >= 0',
                                       name='ck_contents_dislike_count_non_negative'),
                    sa.ForeignKeyConstraint(['creator_id'], ['users.id']),
                    sa.ForeignKeyConstraint(['language_id'], ['languages.id']),
                    sa.ForeignKeyConstraint(['series_id'], ['series.id']),
                    sa.PrimaryKeyConstraint('id')
                    )
    op.create_index(op.f('ix_contents_id'), 'contents', ['id'], unique=False)
    op.create_index(op.f('ix_contents_type'),
                    'contents', ['type'], unique=False)
    op.create_index(op.f('ix_contents_creator_id'),
                    'contents', ['creator_id'], unique=False)
    op.create_index(op.f('ix_contents_category'),
                    'contents', ['category'], unique=False)
    op.create_index(op.f('ix_contents_series_id'),
                    'contents', ['series_id'], unique=False)
    op.create_index(op.f('ix_contents_created_at'),
                    'contents', ['created_at'], unique=False)

    op.create_table('interactions',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('content_id', sa.Integer(), nullable=False),
                    sa.Column('user_id', sa.Integer(), nullable=False),
                    sa.Column('type', sa.String(), nullable=False),
                    sa.Column('created_at', sa.DateTime(timezone=True),
                              server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
                    sa.ForeignKeyConstraint(['content_id'], ['contents.id']),
                    sa.ForeignKeyConstraint(['user_id'], ['users.id']),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('content_id', 'user_id',
                                        name='uq_interactions_content_user')
                    )
    op.create_index(op.f('ix_interactions_id'),
                    'interactions', ['id'], unique=False)
    op.create_index(op.f('ix_interactions_content_id'),
                    'interactions', ['content_id'], unique=False)
    op.create_index(op.f('ix_interactions_user_id'),
                    'interactions', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_table('interactions')
    op.drop_table('contents')
    op.drop_table('series')
    op.drop_table('categories')
    op.drop_table('languages')
    op.drop_table('follows')
    op.drop_table('otp_codes')
    op.drop_table('users')
