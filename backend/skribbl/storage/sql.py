"""SQLAlchemy-backed persistence gateway.

All session handling lives in this module; callers only see records and
:class:`PersistenceError`.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, create_engine, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from ..game.words import DEFAULT_WORDS, categorize_difficulty
from .base import ParticipantRecord, PersistenceError, PersistenceGateway, RoomRecord


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class GameRow(Base):
    __tablename__ = "games"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    room_code: Mapped[str] = mapped_column(String(8), index=True)
    owner_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    current_word: Mapped[str | None] = mapped_column(String(100), nullable=True)
    current_drawer: Mapped[str | None] = mapped_column(String(64), nullable=True)
    round: Mapped[int] = mapped_column(Integer, default=1)
    max_rounds: Mapped[int] = mapped_column(Integer, default=3)
    draw_time: Mapped[int] = mapped_column(Integer, default=80)
    status: Mapped[str] = mapped_column(String(20), default="waiting")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class GamePlayerRow(Base):
    __tablename__ = "game_players"

    game_id: Mapped[str] = mapped_column(ForeignKey("games.id"), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(20))
    avatar: Mapped[str] = mapped_column(Text, default="")
    score: Mapped[int] = mapped_column(Integer, default=0)
    seat: Mapped[int] = mapped_column(Integer, default=0)


class WordRow(Base):
    __tablename__ = "words"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    word: Mapped[str] = mapped_column(String(100), unique=True)
    difficulty: Mapped[str] = mapped_column(String(10), default="medium", index=True)


class ChatMessageRow(Base):
    __tablename__ = "chat_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    game_id: Mapped[str] = mapped_column(ForeignKey("games.id"), index=True)
    user_id: Mapped[str] = mapped_column(String(64))
    message: Mapped[str] = mapped_column(Text)
    is_guess: Mapped[bool] = mapped_column(Boolean, default=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


def _make_engine(database_url: str, echo: bool = False):
    # Render-style URLs
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)

    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, **kwargs)

    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        pool_recycle=3600,
    )


class SqlGateway(PersistenceGateway):
    def __init__(self, database_url: str, echo: bool = False, seed_words: list[str] | None = None) -> None:
        self.engine = _make_engine(database_url, echo=echo)
        self._session_factory = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)
        Base.metadata.create_all(bind=self.engine)
        self._seed_words(seed_words if seed_words is not None else DEFAULT_WORDS)

    @contextmanager
    def _session(self):
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Database error: %s", e)
            raise PersistenceError(str(e)) from e
        finally:
            session.close()

    def _seed_words(self, words: list[str]) -> None:
        with self._session() as session:
            count = session.scalar(select(func.count()).select_from(WordRow))
            if count:
                logger.info("Word catalog contains %d words", count)
                return
            unique = list(dict.fromkeys(w.strip().lower() for w in words if w.strip()))
            for w in unique:
                session.add(WordRow(word=w, difficulty=categorize_difficulty(w)))
            logger.info("Seeded word catalog with %d built-in words", len(unique))

    def save_room(self, record: RoomRecord) -> None:
        with self._session() as session:
            row = session.get(GameRow, record.id)
            if row is None:
                row = GameRow(id=record.id, room_code=record.room_code)
                session.add(row)
            row.owner_id = record.owner_id
            row.current_word = record.current_word
            row.current_drawer = record.current_drawer
            row.round = record.round
            row.max_rounds = record.max_rounds
            row.draw_time = record.draw_time
            row.status = record.status

    def latest_room_by_code(self, room_code: str) -> RoomRecord | None:
        with self._session() as session:
            row = session.scalars(
                select(GameRow)
                .where(GameRow.room_code == room_code)
                .order_by(GameRow.created_at.desc())
                .limit(1)
            ).first()
            if row is None:
                return None
            return RoomRecord(
                id=row.id,
                room_code=row.room_code,
                owner_id=row.owner_id,
                current_word=row.current_word,
                current_drawer=row.current_drawer,
                round=row.round,
                max_rounds=row.max_rounds,
                draw_time=row.draw_time,
                status=row.status,
            )

    def upsert_participant(self, room_id: str, participant: ParticipantRecord) -> None:
        with self._session() as session:
            row = session.get(GamePlayerRow, (room_id, participant.id))
            if row is None:
                row = GamePlayerRow(game_id=room_id, user_id=participant.id)
                session.add(row)
            row.name = participant.name
            row.avatar = participant.avatar
            row.score = participant.score
            row.seat = participant.seat

    def delete_participant(self, room_id: str, participant_id: str) -> None:
        with self._session() as session:
            row = session.get(GamePlayerRow, (room_id, participant_id))
            if row is not None:
                session.delete(row)

    def participants_for_room(self, room_id: str) -> list[ParticipantRecord]:
        with self._session() as session:
            rows = session.scalars(
                select(GamePlayerRow).where(GamePlayerRow.game_id == room_id).order_by(GamePlayerRow.seat)
            ).all()
            return [
                ParticipantRecord(id=r.user_id, name=r.name, avatar=r.avatar, score=r.score, seat=r.seat)
                for r in rows
            ]

    def upsert_score(self, room_id: str, participant_id: str, score: int) -> None:
        with self._session() as session:
            row = session.get(GamePlayerRow, (room_id, participant_id))
            if row is not None:
                row.score = score

    def reset_scores(self, room_id: str) -> None:
        with self._session() as session:
            for row in session.scalars(select(GamePlayerRow).where(GamePlayerRow.game_id == room_id)):
                row.score = 0

    def random_words(self, count: int, difficulty: str | None = None) -> list[str]:
        with self._session() as session:
            stmt = select(WordRow.word)
            if difficulty:
                stmt = stmt.where(WordRow.difficulty == difficulty)
            return list(session.scalars(stmt.order_by(func.random()).limit(count)))

    def save_chat_message(self, room_id: str, user_id: str, message: str, is_guess: bool = False) -> None:
        with self._session() as session:
            session.add(ChatMessageRow(game_id=room_id, user_id=user_id, message=message, is_guess=is_guess))

    def close(self) -> None:
        self.engine.dispose()
