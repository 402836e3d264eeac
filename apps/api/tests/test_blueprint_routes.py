import json

import pytest

from conftest import OTHER_ID, OWNER_ID, SAMPLE_BLUEPRINT, add_blueprint, auth_header
from config import settings
from main import app
from services.errors import ProviderError


OWNER_AUTH_HEADER = auth_header(OWNER_ID)
OTHER_AUTH_HEADER = auth_header(OTHER_ID)


@pytest.mark.asyncio
async def test_generate_list_fetch_delete_flow(api_client, gateway):
    gateway.queue("```json\n" + json.dumps(SAMPLE_BLUEPRINT) + "\n```")

    response = await api_client.post("/generate", json={"idea": "A recipe-sharing app"}, headers=OWNER_AUTH_HEADER)
    assert response.status_code == 200
    created = response.json()
    assert created["projectName"] == "RecipeHub"
    assert created["userId"] == OWNER_ID
    assert created["isPublic"] is False
    assert created["techStack"] == SAMPLE_BLUEPRINT["techStack"]
    assert created["database"] == SAMPLE_BLUEPRINT["database"]

    listing = await api_client.get("/blueprints", headers=OWNER_AUTH_HEADER)
    assert listing.status_code == 200
    assert [item["id"] for item in listing.json()] == [created["id"]]
    assert "features" not in listing.json()[0]

    fetched = await api_client.get(f"/blueprints/{created['id']}", headers=OWNER_AUTH_HEADER)
    assert fetched.status_code == 200
    assert fetched.json()["roadmap"] == SAMPLE_BLUEPRINT["roadmap"]

    deleted = await api_client.delete(f"/blueprints/{created['id']}", headers=OWNER_AUTH_HEADER)
    assert deleted.status_code == 200
    assert deleted.json() == {"success": True}

    gone = await api_client.get(f"/blueprints/{created['id']}", headers=OWNER_AUTH_HEADER)
    assert gone.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{"idea": ""}, {"idea": "   "}, {}])
async def test_generate_rejects_empty_idea_without_provider_call(api_client, gateway, body):
    response = await api_client.post("/generate", json=body, headers=OWNER_AUTH_HEADER)

    assert response.status_code == 400
    assert response.json()["detail"] == "Idea is required"
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_generate_maps_upstream_failures_to_500(api_client, gateway):
    gateway.queue(ProviderError("Model provider request failed: rate limited"))
    failed = await api_client.post("/generate", json={"idea": "Habit tracker"}, headers=OWNER_AUTH_HEADER)
    assert failed.status_code == 500

    gateway.queue("Here is a lovely plan for you!")
    malformed = await api_client.post("/generate", json={"idea": "Habit tracker"}, headers=OWNER_AUTH_HEADER)
    assert malformed.status_code == 500

    listing = await api_client.get("/blueprints", headers=OWNER_AUTH_HEADER)
    assert listing.json() == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method, path",
    [
        ("post", "/generate"),
        ("get", "/blueprints"),
        ("get", "/blueprints/bp-any"),
        ("delete", "/blueprints/bp-any"),
        ("post", "/blueprints/bp-any/regenerate"),
        ("post", "/blueprints/bp-any/share"),
        ("delete", "/blueprints/bp-any/share"),
        ("get", "/blueprints/bp-any/export"),
    ],
)
async def test_owner_routes_require_session(api_client, method, path):
    response = await api_client.request(method.upper(), path, json={})
    assert response.status_code == 401

    bad_token = await api_client.request(
        method.upper(), path, json={}, headers={"Authorization": "Bearer not-a-token"}
    )
    assert bad_token.status_code == 401


@pytest.mark.asyncio
async def test_foreign_blueprint_is_not_found(api_client, session_maker, gateway):
    async with session_maker() as session:
        await add_blueprint(session, blueprint_id="bp-owner")

    assert (await api_client.get("/blueprints/bp-owner", headers=OTHER_AUTH_HEADER)).status_code == 404
    assert (await api_client.delete("/blueprints/bp-owner", headers=OTHER_AUTH_HEADER)).status_code == 404
    assert (await api_client.post("/blueprints/bp-owner/share", headers=OTHER_AUTH_HEADER)).status_code == 404
    assert (await api_client.delete("/blueprints/bp-owner/share", headers=OTHER_AUTH_HEADER)).status_code == 404
    assert (await api_client.get("/blueprints/bp-owner/export", headers=OTHER_AUTH_HEADER)).status_code == 404
    regen = await api_client.post(
        "/blueprints/bp-owner/regenerate", json={"section": "features"}, headers=OTHER_AUTH_HEADER
    )
    assert regen.status_code == 404
    assert gateway.calls == []

    # Still intact for its owner.
    assert (await api_client.get("/blueprints/bp-owner", headers=OWNER_AUTH_HEADER)).status_code == 200


@pytest.mark.asyncio
async def test_regenerate_route(api_client, session_maker, gateway):
    async with session_maker() as session:
        await add_blueprint(session, blueprint_id="bp-regen")

    missing = await api_client.post("/blueprints/bp-regen/regenerate", json={}, headers=OWNER_AUTH_HEADER)
    assert missing.status_code == 400
    assert missing.json()["detail"] == "Section is required"

    invalid = await api_client.post(
        "/blueprints/bp-regen/regenerate", json={"section": "pricing"}, headers=OWNER_AUTH_HEADER
    )
    assert invalid.status_code == 400

    new_db = {"tables": [{"name": "meals", "fields": ["id", "name"], "relations": "none"}]}
    gateway.queue(new_db)
    ok = await api_client.post(
        "/blueprints/bp-regen/regenerate", json={"section": "database"}, headers=OWNER_AUTH_HEADER
    )
    assert ok.status_code == 200
    payload = ok.json()
    assert payload["database"] == new_db
    assert payload["features"] == SAMPLE_BLUEPRINT["features"]
    assert payload["techStack"] == SAMPLE_BLUEPRINT["techStack"]
    assert payload["roadmap"] == SAMPLE_BLUEPRINT["roadmap"]

    gateway.queue("{broken")
    broken = await api_client.post(
        "/blueprints/bp-regen/regenerate", json={"section": "roadmap"}, headers=OWNER_AUTH_HEADER
    )
    assert broken.status_code == 500

    unchanged = await api_client.get("/blueprints/bp-regen", headers=OWNER_AUTH_HEADER)
    assert unchanged.json()["roadmap"] == SAMPLE_BLUEPRINT["roadmap"]


@pytest.mark.asyncio
async def test_share_flow_and_public_view(api_client, session_maker):
    async with session_maker() as session:
        await add_blueprint(session, blueprint_id="bp-shared")

    first = await api_client.post("/blueprints/bp-shared/share", headers=OWNER_AUTH_HEADER)
    assert first.status_code == 200
    token = first.json()["shareToken"]
    assert first.json()["shareUrl"].endswith(f"/share/{token}")

    second = await api_client.post("/blueprints/bp-shared/share", headers=OWNER_AUTH_HEADER)
    assert second.json()["shareToken"] == token

    public = await api_client.get(f"/share/{token}")
    assert public.status_code == 200
    assert public.json()["id"] == "bp-shared"
    assert "userId" not in public.json()

    revoked = await api_client.delete("/blueprints/bp-shared/share", headers=OWNER_AUTH_HEADER)
    assert revoked.status_code == 200
    assert revoked.json()["message"] == "Blueprint is no longer shared"
    assert revoked.json()["updated"]["isPublic"] is False
    assert revoked.json()["updated"]["shareToken"] == token

    hidden = await api_client.get(f"/share/{token}")
    unknown = await api_client.get("/share/never-issued")
    assert hidden.status_code == unknown.status_code == 404
    assert hidden.json() == unknown.json()


@pytest.mark.asyncio
async def test_export_downloads(api_client, session_maker):
    async with session_maker() as session:
        await add_blueprint(session, blueprint_id="bp-export", project_name="Recipe Hub")

    markdown = await api_client.get("/blueprints/bp-export/export", headers=OWNER_AUTH_HEADER)
    assert markdown.status_code == 200
    assert markdown.headers["content-type"].startswith("text/markdown")
    assert 'filename="Recipe-Hub-blueprint.md"' in markdown.headers["content-disposition"]
    assert markdown.text.startswith("# Recipe Hub")

    pdf = await api_client.get("/blueprints/bp-export/export?format=pdf", headers=OWNER_AUTH_HEADER)
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")

    unsupported = await api_client.get("/blueprints/bp-export/export?format=docx", headers=OWNER_AUTH_HEADER)
    assert unsupported.status_code == 400


@pytest.fixture
def generation_quota(monkeypatch):
    """Enable per-user quotas of two calls per hour with Redis unreachable."""
    app.state.disable_rate_limits = False
    monkeypatch.setattr(settings, "REDIS_URL", "redis://127.0.0.1:1")
    monkeypatch.setattr(settings, "GENERATE_RATE_LIMIT_PER_HOUR", 2)


@pytest.mark.asyncio
async def test_generation_quota_uses_local_counter_per_user(api_client, gateway, generation_quota):
    for _ in range(3):
        gateway.queue(SAMPLE_BLUEPRINT)

    statuses = []
    for _ in range(3):
        response = await api_client.post("/generate", json={"idea": "Habit tracker"}, headers=OWNER_AUTH_HEADER)
        statuses.append(response.status_code)
    assert statuses == [200, 200, 429]
    assert len(gateway.calls) == 2

    other = await api_client.post("/generate", json={"idea": "Habit tracker"}, headers=OTHER_AUTH_HEADER)
    assert other.status_code == 200


@pytest.mark.asyncio
async def test_rejected_input_does_not_consume_quota(api_client, session_maker, gateway, generation_quota):
    async with session_maker() as session:
        await add_blueprint(session, blueprint_id="bp-quota")

    for _ in range(3):
        empty = await api_client.post("/generate", json={"idea": "  "}, headers=OWNER_AUTH_HEADER)
        assert empty.status_code == 400
        missing = await api_client.post("/blueprints/bp-quota/regenerate", json={}, headers=OWNER_AUTH_HEADER)
        assert missing.status_code == 400
        invalid = await api_client.post(
            "/blueprints/bp-quota/regenerate", json={"section": "pricing"}, headers=OWNER_AUTH_HEADER
        )
        assert invalid.status_code == 400

    gateway.queue(SAMPLE_BLUEPRINT)
    created = await api_client.post("/generate", json={"idea": "Habit tracker"}, headers=OWNER_AUTH_HEADER)
    assert created.status_code == 200

    regenerated = []
    for _ in range(3):
        gateway.queue(SAMPLE_BLUEPRINT["features"])
        response = await api_client.post(
            "/blueprints/bp-quota/regenerate", json={"section": "features"}, headers=OWNER_AUTH_HEADER
        )
        regenerated.append(response.status_code)
    assert regenerated == [200, 200, 429]


@pytest.mark.asyncio
async def test_zero_quota_disables_rate_limiting(api_client, gateway, generation_quota, monkeypatch):
    monkeypatch.setattr(settings, "GENERATE_RATE_LIMIT_PER_HOUR", 0)

    for _ in range(4):
        gateway.queue(SAMPLE_BLUEPRINT)
        response = await api_client.post("/generate", json={"idea": "Habit tracker"}, headers=OWNER_AUTH_HEADER)
        assert response.status_code == 200
