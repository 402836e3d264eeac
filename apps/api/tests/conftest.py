import json
from typing import List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from database import Base, get_db
from main import app
from models.blueprint import Blueprint
from routers import rate_limit
from services.errors import ProviderError
from services.model_gateway import get_model_gateway
from services.session_token import create_session_token


OWNER_ID = "owner-user"
OTHER_ID = "other-user"


def auth_header(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_session_token(user_id, f'{user_id}@example.com')['token']}"}


SAMPLE_BLUEPRINT = {
    "projectName": "RecipeHub",
    "features": {
        "mvp": ["User accounts", "Recipe upload", "Search by ingredient"],
        "phase2": ["Ratings", "Comments"],
        "phase3": ["Meal planning", "Grocery export"],
    },
    "techStack": {
        "frontend": "Next.js",
        "backend": "FastAPI",
        "database": "PostgreSQL",
        "auth": "Clerk",
        "hosting": "Vercel",
    },
    "database": {
        "tables": [
            {"name": "users", "fields": ["id", "email"], "relations": "has many recipes"},
            {"name": "recipes", "fields": ["id", "user_id", "title"], "relations": "belongs to users"},
        ]
    },
    "apiEndpoints": ["POST /api/recipes - Create recipe", "GET /api/recipes - List recipes"],
    "roadmap": {
        "month1": ["Week 1: Setup", "Week 2: Auth", "Week 3: Upload", "Week 4: Search"],
        "month2": ["Week 1: Ratings", "Week 2: Comments", "Week 3: Polish", "Week 4: Beta"],
        "month3": ["Week 1: Planner", "Week 2: Grocery", "Week 3: QA", "Week 4: Launch"],
    },
}


class FakeGateway:
    """Records every call and replays queued responses."""

    def __init__(self, responses: Optional[List[object]] = None):
        self.responses = list(responses or [])
        self.calls = []

    def queue(self, response: object) -> None:
        self.responses.append(response)

    async def complete(self, system, user, params):
        self.calls.append({"system": system, "user": user, "params": params})
        if not self.responses:
            raise ProviderError("No fake response queued.")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, (dict, list)):
            return json.dumps(response)
        return response


@pytest.fixture(autouse=True)
def reset_local_rate_limit_counters():
    """Keep in-memory rate-limit state isolated between tests."""
    previous = getattr(app.state, "disable_rate_limits", False)
    app.state.disable_rate_limits = True
    rate_limit._local_counters.clear()
    yield
    rate_limit._local_counters.clear()
    app.state.disable_rate_limits = previous


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    db_path = tmp_path / "blueprints.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield maker
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest_asyncio.fixture
async def api_client(session_maker, gateway):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_model_gateway] = lambda: gateway
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_model_gateway, None)


async def add_blueprint(session, *, blueprint_id: str, user_id: str = OWNER_ID, **overrides) -> Blueprint:
    values = dict(
        id=blueprint_id,
        user_id=user_id,
        project_name=SAMPLE_BLUEPRINT["projectName"],
        idea="A recipe-sharing app",
        features=SAMPLE_BLUEPRINT["features"],
        tech_stack=SAMPLE_BLUEPRINT["techStack"],
        database_schema=SAMPLE_BLUEPRINT["database"],
        roadmap=SAMPLE_BLUEPRINT["roadmap"],
        api_endpoints=SAMPLE_BLUEPRINT["apiEndpoints"],
        is_public=False,
    )
    values.update(overrides)
    row = Blueprint(**values)
    session.add(row)
    await session.commit()
    await session.refresh(row)
    return row
