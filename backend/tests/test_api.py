import sys
import types
import pathlib
import importlib.util
BASE_DIR = pathlib.Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from fastapi.testclient import TestClient
import httpx
from langchain_core.language_models import FakeListChatModel
from langchain_openai import ChatOpenAI


def load_main_module():
    main_path = BASE_DIR / "main.py"
    spec = importlib.util.spec_from_file_location("main", str(main_path))
    assert spec and spec.loader
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)  # type: ignore[attr-defined]
    return mod


LEASE_TEXT = "RESIDENTIAL LEASE AGREEMENT\n\n1. PROPERTY\nThe Landlord leases the villa to the Tenant."
UPDATED_TEXT = LEASE_TEXT + "\n\n8. CONFIDENTIALITY\nThe Parties shall keep the terms of this Agreement confidential."

START_PAYLOAD = {
    "request": {
        "document_type": "rental_agreement",
        "language": "en",
        "country": "ae",
        "parties": {
            "party_a": {"name": "Ahmed Ali", "id_number": "784-1"},
            "party_b": {"name": "Sara Khan", "id_number": "784-2"},
        },
        "details": {"property_address": "Villa 12", "rent_amount": "60000"},
    }
}


def _client(monkeypatch, chat_responses=None):
    monkeypatch.setenv("OPENAI_API_KEY", "test")
    monkeypatch.setenv("DOTENV_DISABLED", "1")
    monkeypatch.setenv("HISTORY_COMMIT_THRESHOLD", "10")
    app_mod = load_main_module()

    import legaldraft.services.llm as llm

    async def _create(**kwargs):
        return types.SimpleNamespace(
            choices=[types.SimpleNamespace(message=types.SimpleNamespace(content=LEASE_TEXT))]
        )

    class _DummyAsyncOpenAI:
        def __init__(self, api_key: str):
            self.chat = types.SimpleNamespace(completions=types.SimpleNamespace(create=_create))

    monkeypatch.setattr(llm, "AsyncOpenAI", _DummyAsyncOpenAI)
    if chat_responses is not None:
        app_mod.app.state.text_service = llm.GenerativeTextService(
            app_mod.app.state.settings,
            chat_model=FakeListChatModel(responses=chat_responses),
        )
    return TestClient(app_mod.app), app_mod


def test_health(monkeypatch):
    client, _ = _client(monkeypatch)
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert resp.json()["templates"] >= 3


def test_templates_and_reference_data(monkeypatch):
    client, _ = _client(monkeypatch)
    listed = client.get("/api/templates").json()["templates"]
    assert "rental_agreement" in {t["document_type"] for t in listed}

    resp = client.post(
        "/api/templates/rental_agreement/render",
        json={"language": "en", "values": {"party_a_name": "Ahmed"}, "flags": {"has_deposit_amount": False}},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert "Ahmed" in body["text"]
    assert "party_b_name" in body["missing_required"]

    assert client.get("/api/templates/power_of_attorney").status_code == 404

    ref = client.get("/api/reference").json()
    assert {c["code"] for c in ref["countries"]} == {"ae", "sa", "qa", "kw", "bh", "om"}
    assert "add_penalty" in {q["key"] for q in ref["quick_actions"]}


def test_full_drafting_flow(monkeypatch):
    client, _ = _client(monkeypatch, chat_responses=[UPDATED_TEXT])

    started = client.post("/api/session/start", json=START_PAYLOAD)
    assert started.status_code == 200
    sid = started.json()["session_id"]

    generated = client.post(f"/api/session/{sid}/generate")
    assert generated.status_code == 200
    assert generated.json()["content"] == LEASE_TEXT
    assert generated.json()["title"] == "Residential Lease Agreement - Ahmed Ali & Sara Khan"

    begun = client.post(f"/api/session/{sid}/edit/begin").json()
    assert begun["state"] == "editing"
    assert begun["history_length"] == 1

    small = client.post(f"/api/session/{sid}/edit/direct", json={"content": LEASE_TEXT + "!"}).json()
    assert small["committed"] is False
    assert small["has_uncommitted_changes"] is True

    client.post(f"/api/session/{sid}/edit/mode", json={"mode": "ai_assisted"})
    edited = client.post(f"/api/session/{sid}/edit/ai", json={"quick_action": "add_confidentiality"})
    assert edited.status_code == 200
    assert edited.json()["content"] == UPDATED_TEXT
    # the buffered "!" edit and the AI result are separate undo steps
    assert edited.json()["history_length"] == 3
    assert edited.json()["transcript"][1]["content"] == "Add a confidentiality clause"

    undone = client.post(f"/api/session/{sid}/edit/undo").json()
    assert undone["content"] == LEASE_TEXT + "!"
    undone = client.post(f"/api/session/{sid}/edit/undo").json()
    assert undone["content"] == LEASE_TEXT
    client.post(f"/api/session/{sid}/edit/redo")
    redone = client.post(f"/api/session/{sid}/edit/redo").json()
    assert redone["content"] == UPDATED_TEXT

    applied = client.post(f"/api/session/{sid}/edit/apply").json()
    assert applied["content"] == UPDATED_TEXT
    assert applied["state"] == "idle"

    exported = client.get(f"/api/session/{sid}/export").json()["document"]
    assert exported["reference_id"].startswith("AE-RENTAL_AGREEMENT-")
    assert exported["content"] == UPDATED_TEXT

    finalized = client.post(f"/api/session/{sid}/finalize")
    assert finalized.status_code == 200
    assert finalized.json()["document"]["content"] == UPDATED_TEXT
    assert client.get(f"/api/session/{sid}").status_code == 404


def test_failed_ai_edit_keeps_content(monkeypatch):
    client, app_mod = _client(monkeypatch)
    from legaldraft.exceptions import GenerationError

    sid = client.post("/api/session/start", json=START_PAYLOAD).json()["session_id"]
    client.post(f"/api/session/{sid}/generate")

    class _BrokenService:
        settings = app_mod.app.state.settings

        async def converse(self, **kwargs):
            raise GenerationError("upstream down")

    from legaldraft.services.session import get_session
    get_session(sid).editor.service = _BrokenService()

    client.post(f"/api/session/{sid}/edit/begin")
    client.post(f"/api/session/{sid}/edit/mode", json={"mode": "ai_assisted"})
    resp = client.post(f"/api/session/{sid}/edit/ai", json={"instruction": "Simplify the language"})
    assert resp.status_code == 502
    assert resp.json()["detail"] == "upstream down"

    state = client.get(f"/api/session/{sid}").json()["editor"]
    assert state["content"] == LEASE_TEXT
    assert state["history_length"] == 1
    assert state["transcript"][-1]["role"] == "assistant"


def test_upstream_error_body_during_ai_edit_is_a_502(monkeypatch):
    client, app_mod = _client(monkeypatch)
    import legaldraft.services.llm as llm

    def handler(request):
        return httpx.Response(200, json={"error": {"message": "model overloaded"}})

    model = ChatOpenAI(
        model="gpt-4o",
        api_key="test",
        max_retries=0,
        http_async_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    app_mod.app.state.text_service = llm.GenerativeTextService(app_mod.app.state.settings, chat_model=model)

    sid = client.post("/api/session/start", json=START_PAYLOAD).json()["session_id"]
    client.post(f"/api/session/{sid}/generate")
    client.post(f"/api/session/{sid}/edit/begin")
    client.post(f"/api/session/{sid}/edit/mode", json={"mode": "ai_assisted"})
    before = client.get(f"/api/session/{sid}").json()["editor"]

    resp = client.post(f"/api/session/{sid}/edit/ai", json={"instruction": "Simplify the language"})
    assert resp.status_code == 502
    assert "detail" in resp.json()

    after = client.get(f"/api/session/{sid}").json()["editor"]
    assert after["content"] == before["content"] == LEASE_TEXT
    assert after["history_length"] == before["history_length"]
    assert after["history_index"] == before["history_index"]
    assert after["ai_edit_pending"] is False
    assert after["transcript"][-1]["role"] == "assistant"


def test_shutdown_closes_the_generative_client(monkeypatch):
    client, app_mod = _client(monkeypatch)
    closed = []

    async def _aclose():
        closed.append(True)

    monkeypatch.setattr(app_mod.app.state.text_service, "aclose", _aclose)
    with client:
        assert client.get("/api/health").status_code == 200
    assert closed == [True]


def test_error_statuses(monkeypatch):
    client, _ = _client(monkeypatch)
    assert client.get("/api/session/does-not-exist").status_code == 404

    bad = {"request": {**START_PAYLOAD["request"], "document_type": "lease"}}
    resp = client.post("/api/session/start", json=bad)
    assert resp.status_code == 400
    assert "Unsupported document type" in resp.json()["detail"]

    missing_id = {
        "request": {
            **START_PAYLOAD["request"],
            "parties": {"party_a": {"name": "Ahmed"}, "party_b": {"name": "Sara", "id_number": "2"}},
        }
    }
    sid = client.post("/api/session/start", json=missing_id).json()["session_id"]
    assert client.post(f"/api/session/{sid}/generate").status_code == 400
    # editing needs a draft first
    assert client.post(f"/api/session/{sid}/edit/begin").status_code == 409
    assert client.post(f"/api/session/{sid}/finalize").status_code == 409
    assert client.delete(f"/api/session/{sid}").json() == {"ok": True}


def test_ai_edit_requires_ai_mode(monkeypatch):
    client, _ = _client(monkeypatch)
    sid = client.post("/api/session/start", json=START_PAYLOAD).json()["session_id"]
    client.post(f"/api/session/{sid}/generate")
    client.post(f"/api/session/{sid}/edit/begin")
    resp = client.post(f"/api/session/{sid}/edit/ai", json={"instruction": "Make it shorter"})
    assert resp.status_code == 409


def test_custom_document_chat_then_generate(monkeypatch):
    client, _ = _client(monkeypatch, chat_responses=["Who are the parties?"])
    started = client.post(
        "/api/session/start",
        json={"request": {"document_type": "custom", "language": "en", "country": "bh"}},
    ).json()
    sid = started["session_id"]
    assert started["chat"][0]["role"] == "assistant"

    # no user turn yet
    assert client.post(f"/api/session/{sid}/generate").status_code == 400

    reply = client.post(f"/api/session/{sid}/chat", json={"message": "A memo between two business partners"})
    assert reply.status_code == 200
    assert reply.json()["reply"]["content"] == "Who are the parties?"
    # the dummy one-shot client answers the title request too
    assert reply.json()["suggested_title"]

    generated = client.post(f"/api/session/{sid}/generate")
    assert generated.status_code == 200
    assert generated.json()["content"] == LEASE_TEXT


def test_sessions_are_independent(monkeypatch):
    client, _ = _client(monkeypatch)
    s1 = client.post("/api/session/start", json=START_PAYLOAD).json()["session_id"]
    other = {"request": {**START_PAYLOAD["request"], "document_type": "nda"}}
    s2 = client.post("/api/session/start", json=other).json()["session_id"]

    sessions = {s["session_id"]: s for s in client.get("/api/session/list").json()["sessions"]}
    assert s1 in sessions and s2 in sessions
    assert sessions[s1]["document_type"] == "rental_agreement"
    assert sessions[s2]["document_type"] == "nda"

    client.post(f"/api/session/{s1}/generate")
    assert client.get(f"/api/session/{s1}").json()["has_draft"] is True
    assert client.get(f"/api/session/{s2}").json()["has_draft"] is False


def test_lambda_entrypoint(monkeypatch):
    monkeypatch.setenv("DOTENV_DISABLED", "1")
    import lambda_function

    assert callable(lambda_function.lambda_handler)
