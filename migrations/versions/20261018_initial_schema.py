"""initial manga schema

Revision ID: 20261018_initial
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '20261018_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

manga_status = sa.Enum('ongoing', 'completed', name='manga_status', create_constraint=True)
library_status = sa.Enum('reading', 'completed', 'planned', 'on-hold', name='library_status', create_constraint=True)
report_issue_type = sa.Enum('unreadable', 'missing', 'wrong_order', 'other', name='report_issue_type', create_constraint=True)
report_status = sa.Enum('pending', 'in_progress', 'resolved', 'rejected', name='report_status', create_constraint=True)
admin_notification_type = sa.Enum('manga_report', name='admin_notification_type', create_constraint=True)

DEFAULT_GENRES = [
    'Action', 'Adventure', 'Comedy', 'Drama', 'Fantasy', 'Horror', 'Mystery',
    'Romance', 'Sci-Fi', 'Slice of Life', 'Sports', 'Supernatural', 'Thriller',
]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(length=255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('fcm_token', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    )
    op.create_table(
        'profiles',
        sa.Column('user_id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=100), nullable=True, unique=True),
        sa.Column('avatar_url', sa.String(length=512), nullable=True),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
    )
    op.create_table(
        'mangas',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('cover_url', sa.String(length=512), nullable=True),
        sa.Column('author', sa.String(length=255), nullable=True),
        sa.Column('status', manga_status, nullable=False, server_default='ongoing'),
        sa.Column('rating', sa.Float(), nullable=False, server_default='0'),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
    )
    op.create_table(
        'chapters',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('manga_id', sa.Integer(), nullable=False),
        sa.Column('number', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=True),
        sa.Column('pages', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['manga_id'], ['mangas.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('manga_id', 'number', name='uq_chapter_manga_number'),
    )
    genres = op.create_table(
        'genres',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=100), nullable=False, unique=True),
    )
    op.create_table(
        'manga_genres',
        sa.Column('manga_id', sa.Integer(), primary_key=True),
        sa.Column('genre_id', sa.Integer(), primary_key=True),
        sa.ForeignKeyConstraint(['manga_id'], ['mangas.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['genre_id'], ['genres.id'], ondelete='CASCADE'),
    )
    op.create_table(
        'user_library',
        sa.Column('user_id', sa.Integer(), primary_key=True),
        sa.Column('manga_id', sa.Integer(), primary_key=True),
        sa.Column('status', library_status, nullable=False, server_default='reading'),
        sa.Column('current_chapter', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['manga_id'], ['mangas.id'], ondelete='CASCADE'),
    )
    op.create_table(
        'comments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('manga_id', sa.Integer(), nullable=False),
        sa.Column('chapter', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('user_email', sa.String(length=255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['manga_id'], ['mangas.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_comments_manga_chapter', 'comments', ['manga_id', 'chapter'])
    op.create_table(
        'comment_subscriptions',
        sa.Column('user_id', sa.Integer(), primary_key=True),
        sa.Column('manga_id', sa.Integer(), primary_key=True),
        sa.Column('chapter', sa.Integer(), primary_key=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['manga_id'], ['mangas.id'], ondelete='CASCADE'),
    )
    op.create_table(
        'comment_notifications',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('comment_id', sa.Integer(), nullable=False),
        sa.Column('read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['comment_id'], ['comments.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_comment_notifications_user_id', 'comment_notifications', ['user_id'])
    op.create_table(
        'manga_reports',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('manga_id', sa.Integer(), nullable=False),
        sa.Column('chapter', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('issue_type', report_issue_type, nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', report_status, nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('resolved_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['manga_id'], ['mangas.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_manga_reports_manga_id', 'manga_reports', ['manga_id'])
    op.create_table(
        'admin_notifications',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('type', admin_notification_type, nullable=False, server_default='manga_report'),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.Column('read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    )

    op.bulk_insert(genres, [{'name': name} for name in DEFAULT_GENRES])


def downgrade() -> None:
    op.drop_table('admin_notifications')
    op.drop_index('ix_manga_reports_manga_id', table_name='manga_reports')
    op.drop_table('manga_reports')
    op.drop_index('ix_comment_notifications_user_id', table_name='comment_notifications')
    op.drop_table('comment_notifications')
    op.drop_table('comment_subscriptions')
    op.drop_index('ix_comments_manga_chapter', table_name='comments')
    op.drop_table('comments')
    op.drop_table('user_library')
    op.drop_table('manga_genres')
    op.drop_table('genres')
    op.drop_table('chapters')
    op.drop_table('mangas')
    op.drop_table('profiles')
    op.drop_table('users')
    bind = op.get_bind()
    for enum_type in (admin_notification_type, report_status, report_issue_type, library_status, manga_status):
        enum_type.drop(bind, checkfirst=True)
