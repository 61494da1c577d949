import asyncio
import os
import tempfile
from pathlib import Path

# Settings are read at import time; point them at throwaway values first
_TMP_DIR = Path(tempfile.mkdtemp(prefix="scenario-progress-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR / 'api.db'}"
os.environ["EVALUATOR_API_KEY"] = "test-key"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DEFAULT_PASSWORD"] = "letmein"

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from app.db.base import Base  # noqa: E402
from app.models.teacher import Teacher  # noqa: E402


@pytest.fixture
def session_factory(tmp_path):
    """Session factory over a fresh SQLite file with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}", poolclass=NullPool)

    async def _create():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_create())
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def teacher_id(session_factory):
    async def _add():
        async with session_factory() as db:
            teacher = Teacher(email="asha@example.com", full_name="Asha Rao")
            db.add(teacher)
            await db.commit()
            await db.refresh(teacher)
            return teacher.id

    return asyncio.run(_add())
