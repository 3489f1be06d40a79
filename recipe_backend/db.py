"""
Database abstraction for Postgres and an in-memory test implementation.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional, Protocol

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    func,
    select,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from recipe_backend.errors import StoreError


class RecipeStore(Protocol):
    """Interface for database access."""

    def create_recipe(
        self,
        recipe_id: str,
        creator_id: str,
        title: str,
        video_url: str,
        duration: str,
    ) -> "RecipeRecord":
        ...

    def add_step(
        self,
        step_id: str,
        recipe_id: str,
        step_number: int,
        step_title: Optional[str],
        instructions: Optional[str],
    ) -> None:
        ...

    def list_recipes(self) -> list["RecipeRecord"]:
        ...

    def get_recipe(self, recipe_id: str) -> Optional["RecipeRecord"]:
        ...

    def list_steps(self, recipe_id: str) -> list["StepRecord"]:
        ...

    def close(self) -> None:
        ...


@dataclass
class RecipeRecord:
    recipe_id: str
    creator_id: str
    title: str
    video_url: str
    duration: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def as_dict(self) -> dict:
        return {
            "recipe_id": self.recipe_id,
            "title": self.title,
            "creator_id": self.creator_id,
            "video_url": self.video_url,
            "duration": self.duration,
            "created_at": self.created_at,
        }


@dataclass
class StepRecord:
    step_id: str
    recipe_id: str
    step_number: int
    step_title: Optional[str]
    instructions: Optional[str]

    def as_dict(self) -> dict:
        return {
            "step_number": self.step_number,
            "instructions": self.instructions,
            "step_title": self.step_title,
        }


class InMemoryRecipeStore:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.recipes: Dict[str, RecipeRecord] = {}
        self.steps: Dict[str, StepRecord] = {}
        self._lock = threading.Lock()

    def create_recipe(
        self,
        recipe_id: str,
        creator_id: str,
        title: str,
        video_url: str,
        duration: str,
    ) -> RecipeRecord:
        record = RecipeRecord(
            recipe_id=recipe_id,
            creator_id=creator_id,
            title=title,
            video_url=video_url,
            duration=duration,
        )
        with self._lock:
            if recipe_id in self.recipes:
                raise StoreError(
                    "Duplicate recipe", f"recipe_id {recipe_id} already exists"
                )
            self.recipes[recipe_id] = record
        return record

    def add_step(
        self,
        step_id: str,
        recipe_id: str,
        step_number: int,
        step_title: Optional[str],
        instructions: Optional[str],
    ) -> None:
        with self._lock:
            if recipe_id not in self.recipes:
                raise StoreError(
                    "Unknown recipe", f"recipe_id {recipe_id} does not exist"
                )
            if step_id in self.steps:
                raise StoreError("Duplicate step", f"step_id {step_id} already exists")
            self.steps[step_id] = StepRecord(
                step_id=step_id,
                recipe_id=recipe_id,
                step_number=step_number,
                step_title=step_title,
                instructions=instructions,
            )

    def list_recipes(self) -> list[RecipeRecord]:
        with self._lock:
            return list(self.recipes.values())

    def get_recipe(self, recipe_id: str) -> Optional[RecipeRecord]:
        with self._lock:
            return self.recipes.get(recipe_id)

    def list_steps(self, recipe_id: str) -> list[StepRecord]:
        with self._lock:
            steps = [s for s in self.steps.values() if s.recipe_id == recipe_id]
        return sorted(steps, key=lambda s: s.step_number)

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.recipes.clear()
            self.steps.clear()

    def close(self) -> None:
        pass


class SqlRecipeStore:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).

    The engine's connection pool is created once and shared by every request.
    Each call runs in its own short session; nothing spans calls, so a recipe
    and its steps are written independently.
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("A database URL is required for SqlRecipeStore")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StoreError("Database initialisation failed", str(exc)) from exc

    def _to_recipe_record(self, row: "RecipeRow") -> RecipeRecord:
        return RecipeRecord(
            recipe_id=row.recipe_id,
            creator_id=row.creator_id,
            title=row.title,
            video_url=row.video_url,
            duration=row.duration,
            created_at=row.created_at,
        )

    def create_recipe(
        self,
        recipe_id: str,
        creator_id: str,
        title: str,
        video_url: str,
        duration: str,
    ) -> RecipeRecord:
        try:
            with self.Session() as session:
                row = RecipeRow(
                    recipe_id=recipe_id,
                    creator_id=creator_id,
                    title=title,
                    video_url=video_url,
                    duration=duration,
                )
                session.add(row)
                session.commit()
                session.refresh(row)
                return self._to_recipe_record(row)
        except SQLAlchemyError as exc:
            raise StoreError("Recipe insert failed", str(exc)) from exc

    def add_step(
        self,
        step_id: str,
        recipe_id: str,
        step_number: int,
        step_title: Optional[str],
        instructions: Optional[str],
    ) -> None:
        try:
            with self.Session() as session:
                session.add(
                    StepRow(
                        step_id=step_id,
                        recipe_id=recipe_id,
                        step_number=step_number,
                        step_title=step_title,
                        instructions=instructions,
                    )
                )
                session.commit()
        except SQLAlchemyError as exc:
            raise StoreError("Step insert failed", str(exc)) from exc

    def list_recipes(self) -> list[RecipeRecord]:
        try:
            with self.Session() as session:
                rows = session.execute(select(RecipeRow)).scalars().all()
                return [self._to_recipe_record(row) for row in rows]
        except SQLAlchemyError as exc:
            raise StoreError("Recipe query failed", str(exc)) from exc

    def get_recipe(self, recipe_id: str) -> Optional[RecipeRecord]:
        try:
            with self.Session() as session:
                row = session.get(RecipeRow, recipe_id)
                if not row:
                    return None
                return self._to_recipe_record(row)
        except SQLAlchemyError as exc:
            raise StoreError("Recipe query failed", str(exc)) from exc

    def list_steps(self, recipe_id: str) -> list[StepRecord]:
        try:
            with self.Session() as session:
                stmt = (
                    select(StepRow)
                    .where(StepRow.recipe_id == recipe_id)
                    .order_by(StepRow.step_number.asc())
                )
                rows = session.execute(stmt).scalars().all()
                return [
                    StepRecord(
                        step_id=row.step_id,
                        recipe_id=row.recipe_id,
                        step_number=row.step_number,
                        step_title=row.step_title,
                        instructions=row.instructions,
                    )
                    for row in rows
                ]
        except SQLAlchemyError as exc:
            raise StoreError("Step query failed", str(exc)) from exc

    def close(self) -> None:
        self.engine.dispose()


Base = declarative_base()


class RecipeRow(Base):
    __tablename__ = "ukla_recipes"

    recipe_id = Column(String, primary_key=True)
    creator_id = Column(String, nullable=False, index=True)
    title = Column(Text, nullable=False)
    video_url = Column(Text, nullable=False)
    duration = Column(String, nullable=False)
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class StepRow(Base):
    __tablename__ = "recipe_steps"

    step_id = Column(String, primary_key=True)
    recipe_id = Column(
        String, ForeignKey("ukla_recipes.recipe_id"), nullable=False, index=True
    )
    step_number = Column(Integer, nullable=False)
    step_title = Column(Text, nullable=True)
    instructions = Column(Text, nullable=True)
