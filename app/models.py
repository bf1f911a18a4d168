import enum

from sqlalchemy import (
    JSON,
    Column,
    Integer,
    String,
    Text,
    DateTime,
    Boolean,
    ForeignKey,
    Enum,
    Float,
    Index,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()


def _values(enum_cls):
    # DB에는 enum 이름이 아니라 값(소문자)을 저장
    return [m.value for m in enum_cls]


# =========================
# Enum 정의
# =========================


class MangaStatus(str, enum.Enum):
    ONGOING = "ongoing"
    COMPLETED = "completed"


class LibraryStatus(str, enum.Enum):
    READING = "reading"
    COMPLETED = "completed"
    PLANNED = "planned"
    ON_HOLD = "on-hold"


class ReportIssueType(str, enum.Enum):
    UNREADABLE = "unreadable"
    MISSING = "missing"
    WRONG_ORDER = "wrong_order"
    OTHER = "other"


class ReportStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class AdminNotificationType(str, enum.Enum):
    MANGA_REPORT = "manga_report"


# =========================
# User / Profile
# =========================


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)

    # 지금은 기기 1대만 가정 → fcm_token을 User에 직접 둠
    fcm_token = Column(String(255), nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    profile = relationship(
        "Profile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    library_entries = relationship(
        "LibraryEntry",
        back_populates="user",
        cascade="all, delete-orphan",
    )


class Profile(Base):
    __tablename__ = "profiles"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    username = Column(String(100), unique=True, nullable=True)
    # avatars 버킷 내부 object key ("{user_id}/<random>.png")
    avatar_url = Column(String(512), nullable=True)
    is_admin = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    user = relationship("User", back_populates="profile")


# =========================
# Catalog: Manga / Chapter / Genre
# =========================


class Manga(Base):
    __tablename__ = "mangas"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    # covers 버킷 내부 object key
    cover_url = Column(String(512), nullable=True)
    author = Column(String(255), nullable=True)
    status = Column(
        Enum(MangaStatus, values_callable=_values, create_constraint=True, name="manga_status"),
        nullable=False,
        default=MangaStatus.ONGOING,
    )
    # 0~10 범위는 관례일 뿐 DB에서 강제하지 않음
    rating = Column(Float, nullable=False, default=0)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    chapters = relationship(
        "Chapter",
        back_populates="manga",
        cascade="all, delete-orphan",
        order_by="Chapter.number",
    )
    genre_links = relationship(
        "MangaGenre",
        back_populates="manga",
        cascade="all, delete-orphan",
    )

    @property
    def genre_names(self):
        return sorted(link.genre.name for link in self.genre_links)


class Chapter(Base):
    __tablename__ = "chapters"

    id = Column(Integer, primary_key=True, autoincrement=True)
    manga_id = Column(Integer, ForeignKey("mangas.id", ondelete="CASCADE"), nullable=False)
    number = Column(Integer, nullable=False)
    title = Column(String(255), nullable=True)
    # pages 버킷 object key 목록 (읽는 순서)
    pages = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    manga = relationship("Manga", back_populates="chapters")

    __table_args__ = (
        UniqueConstraint("manga_id", "number", name="uq_chapter_manga_number"),
    )


class Genre(Base):
    __tablename__ = "genres"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)


class MangaGenre(Base):
    __tablename__ = "manga_genres"

    manga_id = Column(Integer, ForeignKey("mangas.id", ondelete="CASCADE"), primary_key=True)
    genre_id = Column(Integer, ForeignKey("genres.id", ondelete="CASCADE"), primary_key=True)

    manga = relationship("Manga", back_populates="genre_links")
    genre = relationship("Genre")


DEFAULT_GENRES = [
    "Action",
    "Adventure",
    "Comedy",
    "Drama",
    "Fantasy",
    "Horror",
    "Mystery",
    "Romance",
    "Sci-Fi",
    "Slice of Life",
    "Sports",
    "Supernatural",
    "Thriller",
]


# =========================
# 서재 (user_library)
# =========================


class LibraryEntry(Base):
    __tablename__ = "user_library"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    manga_id = Column(Integer, ForeignKey("mangas.id", ondelete="CASCADE"), primary_key=True)
    status = Column(
        Enum(LibraryStatus, values_callable=_values, create_constraint=True, name="library_status"),
        nullable=False,
        default=LibraryStatus.READING,
    )
    current_chapter = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    user = relationship("User", back_populates="library_entries")
    manga = relationship("Manga")


# =========================
# 댓글 / 구독 / 알림
# =========================


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    manga_id = Column(Integer, ForeignKey("mangas.id", ondelete="CASCADE"), nullable=False)
    # chapters 행이 아니라 번호만 참조 (존재 여부 검증 안 함)
    chapter = Column(Integer, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user_email = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_comments_manga_chapter", "manga_id", "chapter"),
    )


class CommentSubscription(Base):
    __tablename__ = "comment_subscriptions"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    manga_id = Column(Integer, ForeignKey("mangas.id", ondelete="CASCADE"), primary_key=True)
    chapter = Column(Integer, primary_key=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)


class CommentNotification(Base):
    __tablename__ = "comment_notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    comment_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    comment = relationship("Comment")


# =========================
# 신고 / 관리자 알림
# =========================


class MangaReport(Base):
    __tablename__ = "manga_reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    manga_id = Column(Integer, ForeignKey("mangas.id", ondelete="CASCADE"), nullable=False, index=True)
    chapter = Column(Integer, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    issue_type = Column(
        Enum(ReportIssueType, values_callable=_values, create_constraint=True, name="report_issue_type"),
        nullable=False,
    )
    description = Column(Text, nullable=True)
    status = Column(
        Enum(ReportStatus, values_callable=_values, create_constraint=True, name="report_status"),
        nullable=False,
        default=ReportStatus.PENDING,
    )
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    resolved_at = Column(DateTime, nullable=True)


class AdminNotification(Base):
    __tablename__ = "admin_notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(
        Enum(AdminNotificationType, values_callable=_values, create_constraint=True, name="admin_notification_type"),
        nullable=False,
        default=AdminNotificationType.MANGA_REPORT,
    )
    data = Column(JSON, nullable=False, default=dict)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
