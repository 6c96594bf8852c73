import pytest
from app.core.exceptions import AIError, AuthenticationError, PlatformError
from app.schemas.resume import Feedback, GenerateResumeOptions
from app.services.platform_store import SDK_UNAVAILABLE, PlatformStore
from tests.conftest import FEEDBACK_JSON, UPDATED_RESUME


def _options(**overrides):
    values = dict(
        original_resume="Jane Doe\nPython developer",
        job_description="Senior Python engineer",
        company_name="Acme Corp",
        feedback=Feedback.model_validate_json(FEEDBACK_JSON),
    )
    values.update(overrides)
    return GenerateResumeOptions(**values)


# --- AVAILABILITY ---

def test_init_times_out_without_platform(db_session):
    store = PlatformStore(db_session)
    assert store.init(timeout=0) is False
    assert store.error == "Platform SDK failed to load within 0 seconds"
    assert store.error_status == 503
    assert store.platform_ready is False
    assert store.is_loading is False

def test_init_waits_for_platform(db_session, platform_factory):
    calls = []

    def provider(db, token):
        calls.append(1)
        return platform_factory(db, token) if len(calls) >= 3 else None

    store = PlatformStore(db_session, platform_provider=provider)
    assert store.init(timeout=5, poll_interval=0)
    assert store.platform_ready
    assert store.error is None
    assert store.auth.is_authenticated is False

def test_operations_without_platform_set_error(db_session):
    store = PlatformStore(db_session)
    assert store.kv.get("resume:1") is None
    assert store.error == SDK_UNAVAILABLE
    assert store.error_status == 503

    store.clear_error()
    assert store.fs.read("/uploads/a.txt") is None
    assert store.ai.chat("hello") is None
    assert store.auth.check_auth_status() is False
    assert store.error == SDK_UNAVAILABLE

    result = store.ai.generate_updated_resume(_options())
    assert result.success is False
    assert result.error == SDK_UNAVAILABLE


# --- AUTH ---

def test_sign_in_flow(store):
    assert store.auth.is_authenticated
    assert store.auth.get_user().email == "jane@example.com"
    assert store.token
    assert store.is_loading is False

    store.auth.sign_out()
    assert store.auth.is_authenticated is False
    assert store.auth.get_user() is None
    assert store.error is None

def test_sign_in_failure_records_error(db_session, platform):
    store = PlatformStore(db_session)
    store.init(timeout=0)
    assert store.auth.sign_in("nobody@example.com", "Password123!") is None
    assert store.error == "Incorrect email or password"
    assert isinstance(store.error_exception("x"), AuthenticationError)

def test_refresh_user_when_signed_out(db_session, platform):
    store = PlatformStore(db_session)
    store.init(timeout=0)
    store.auth.refresh_user()
    assert store.error == "Not signed in"
    assert store.auth.is_authenticated is False

def test_token_restores_session(db_session, platform, store):
    restored = PlatformStore(db_session, store.token)
    assert restored.init(timeout=0)
    assert restored.auth.is_authenticated
    assert restored.auth.get_user().uuid == store.auth.get_user().uuid


# --- FS / KV ---

def test_fs_roundtrip(store):
    item = store.fs.write("/notes/a.txt", "hello")
    assert item.path == "/notes/a.txt"
    assert store.fs.read("/notes/a.txt") == b"hello"
    assert [i.name for i in store.fs.read_dir("/notes")] == ["a.txt"]
    assert store.fs.delete("/notes/a.txt") is True
    assert store.fs.read("/notes/a.txt") is None
    assert store.error_status == 404

def test_fs_upload_returns_first_item(store):
    item = store.fs.upload([("cv.pdf", b"%PDF-1.4"), ("cover.txt", b"hi")])
    assert item.path.startswith("/uploads/")
    assert item.path.endswith("_cv.pdf")

def test_kv_roundtrip(store):
    assert store.kv.set("resume:1", "{}") is True
    assert store.kv.get("resume:1") == "{}"
    assert store.kv.list("resume:*") == ["resume:1"]
    assert store.kv.delete("resume:1") is True
    assert store.kv.get("resume:1") is None
    assert store.error is None


# --- AI ---

def test_feedback_sends_file_text(store, fake_ai):
    store.fs.write("/uploads/cv.txt", "Jane Doe\nPython developer")
    fake_ai.queue(FEEDBACK_JSON)

    response = store.ai.feedback("/uploads/cv.txt", "Rate this resume")

    assert response.message.content == FEEDBACK_JSON
    messages, options = fake_ai.calls[0]
    blocks = messages[0]["content"]
    assert blocks[0]["type"] == "text"
    assert "Python developer" in blocks[0]["text"]
    assert blocks[1] == {"type": "text", "text": "Rate this resume"}
    assert options.model

def test_chat_error_is_recorded(store, fake_ai):
    fake_ai.error = AIError("AI service completely unavailable")
    assert store.ai.chat("hello") is None
    assert store.error == "AI service completely unavailable"
    assert store.error_status == 503

def test_generate_updated_resume_saves_copy(store, fake_ai):
    fake_ai.queue(UPDATED_RESUME)

    result = store.ai.generate_updated_resume(_options())

    assert result.success
    assert result.updated_resume_content == UPDATED_RESUME
    assert result.saved_path.startswith("/resumes/updated/updated_resume_Acme_Corp_")
    assert result.saved_path.endswith(".txt")
    assert store.fs.read(result.saved_path) == UPDATED_RESUME.encode("utf-8")

    prompt, options = fake_ai.calls[0]
    assert "Jane Doe" in prompt[0]["content"]
    assert "Senior Python engineer" in prompt[0]["content"]
    assert options.max_tokens == 4000
    assert options.temperature == 0.3

def test_generate_updated_resume_uses_first_block(store, fake_ai):
    fake_ai.queue([{"type": "text", "text": UPDATED_RESUME}, {"type": "text", "text": "ignored"}])
    result = store.ai.generate_updated_resume(_options())
    assert result.updated_resume_content == UPDATED_RESUME

def test_generate_updated_resume_blank_content(store, fake_ai):
    fake_ai.queue("   \n ")
    result = store.ai.generate_updated_resume(_options())
    assert result.success is False
    assert result.error == "Generated resume content is empty"

def test_generate_updated_resume_no_content(store, fake_ai):
    fake_ai.queue("")
    result = store.ai.generate_updated_resume(_options())
    assert result.success is False
    assert result.error == "Failed to generate resume content from AI"

def test_generate_updated_resume_ai_failure(store, fake_ai):
    fake_ai.error = AIError("AI service reached timeout limit.")
    result = store.ai.generate_updated_resume(_options())
    assert result.success is False
    assert result.error == "AI service reached timeout limit."

def test_generate_updated_resume_survives_write_failure(store, fake_ai, monkeypatch):
    def failing_write(path, data):
        raise PlatformError("disk full")

    monkeypatch.setattr(store._platform().fs, "write", failing_write)
    fake_ai.queue(UPDATED_RESUME)

    result = store.ai.generate_updated_resume(_options(company_name=None))

    assert result.success
    assert result.updated_resume_content == UPDATED_RESUME
    assert "updated_resume_optimized_" in result.saved_path
