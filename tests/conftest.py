import os
import tempfile
from io import BytesIO
from pathlib import Path
from typing import AsyncGenerator, Dict, List, Optional

# Settings are read at import time, so the environment must be in place first
_WORKDIR = tempfile.mkdtemp(prefix="certicraft-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_WORKDIR}/test.db"
os.environ["LOCAL_STORAGE_DIR"] = f"{_WORKDIR}/uploads"
os.environ["TEMP_DIR"] = f"{_WORKDIR}/tmp"
os.environ["MAIL_BACKEND"] = "console"
os.environ["MAIL_SEND_INTERVAL_SECONDS"] = "0"
os.environ["GENERATION_CONCURRENCY"] = "1"
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_KEY"] = ""

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from PIL import Image  # noqa: E402

from certicraft import models  # noqa: E402,F401
from certicraft.database import Base, database, engine  # noqa: E402
from certicraft.services.email_service import BatchResult, EmailRelay, OutgoingEmail, SendResult  # noqa: E402
from certicraft.services.storage_service import LocalStore, SupabaseStore  # noqa: E402

FAKE_SUPABASE_URL = "https://fake-project.supabase.co"


def make_png(width: int = 400, height: int = 200, color=(255, 255, 255)) -> bytes:
    image = Image.new("RGB", (width, height), color)
    buf = BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


class FakeSupabase:
    """In-memory Supabase Storage served through httpx.MockTransport"""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.requests: List[httpx.Request] = []
        self.overrides: Dict[str, List[Optional[bytes]]] = {}

    def public_url(self, bucket: str, key: str) -> str:
        return f"{FAKE_SUPABASE_URL}/storage/v1/object/public/{bucket}/{key}"

    def add_object(self, bucket: str, key: str, content: bytes) -> str:
        self.objects[f"{bucket}/{key}"] = content
        return self.public_url(bucket, key)

    def serve_next(self, url: str, responses: List[Optional[bytes]]) -> None:
        """Queue replacement bodies for the next GETs of url; None means 404"""
        self.overrides[url] = list(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        public_prefix = "/storage/v1/object/public/"
        object_prefix = "/storage/v1/object/"

        if request.method == "GET" and path.startswith(public_prefix):
            queued = self.overrides.get(str(request.url))
            if queued:
                body = queued.pop(0)
                if body is None:
                    return httpx.Response(404, json={"error": "not found"})
                return httpx.Response(200, content=body)
            content = self.objects.get(path[len(public_prefix):])
            if content is None:
                return httpx.Response(404, json={"error": "not found"})
            return httpx.Response(200, content=content)

        if request.method == "POST" and path.startswith(object_prefix):
            if request.headers.get("authorization") != "Bearer test-key":
                return httpx.Response(401, json={"error": "unauthorized"})
            self.objects[path[len(object_prefix):]] = request.content
            return httpx.Response(200, json={"Key": path[len(object_prefix):]})

        if request.method == "DELETE" and path.startswith(object_prefix):
            removed = self.objects.pop(path[len(object_prefix):], None)
            return httpx.Response(200 if removed is not None else 404, json={})

        return httpx.Response(400, json={"error": "unexpected request"})


class FakeRelay(EmailRelay):
    """Relay double that records chunks and rejects chosen chunk indexes"""

    def __init__(self, max_batch_size: int = 100, reject_chunks=(), configured: bool = True, fail_single: bool = False):
        super().__init__(0.0)
        self.max_batch_size = max_batch_size
        self.reject_chunks = set(reject_chunks)
        self.configured = configured
        self.fail_single = fail_single
        self.chunks: List[List[OutgoingEmail]] = []
        self.sent: List[OutgoingEmail] = []
        self.seen_attachment_paths: List[str] = []

    def is_configured(self) -> bool:
        return self.configured

    def _check_attachments(self, message: OutgoingEmail) -> None:
        for attachment in message.attachments:
            assert Path(attachment.path).is_file(), f"attachment {attachment.path} missing at send time"
            self.seen_attachment_paths.append(attachment.path)

    async def deliver(self, message: OutgoingEmail) -> SendResult:
        self._check_attachments(message)
        if self.fail_single:
            return SendResult(success=False, error="Mailbox unavailable")
        self.sent.append(message)
        return SendResult(success=True, message_id=f"<{len(self.sent)}@fake>")

    async def send_batch(self, messages: List[OutgoingEmail]) -> BatchResult:
        index = len(self.chunks)
        self.chunks.append(list(messages))
        for message in messages:
            self._check_attachments(message)
        if index in self.reject_chunks:
            return BatchResult(accepted=False, error=f"chunk {index} rejected")
        self.sent.extend(messages)
        return BatchResult(accepted=True)


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[None, None]:
    Base.metadata.create_all(engine)
    await database.connect()
    try:
        yield
    finally:
        await database.disconnect()
        Base.metadata.drop_all(engine)


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def remote_store(fake_supabase: FakeSupabase) -> SupabaseStore:
    return SupabaseStore(
        base_url=FAKE_SUPABASE_URL,
        api_key="test-key",
        transport=httpx.MockTransport(fake_supabase.handler)
    )


@pytest.fixture
def local_store(tmp_path: Path) -> LocalStore:
    return LocalStore(root=str(tmp_path / "store"))


@pytest.fixture
def template_path(tmp_path: Path) -> str:
    path = tmp_path / "template.png"
    path.write_bytes(make_png())
    return str(path)


@pytest.fixture
def temp_dir() -> Path:
    path = Path(os.environ["TEMP_DIR"])
    path.mkdir(parents=True, exist_ok=True)
    return path


async def create_event_with_participants(names, organizer_name: str = "Jane Organizer"):
    from certicraft.services.event_service import EventService, ParticipantService

    event = await EventService.create_event("Python Workshop", organizer_name)
    participants = []
    for name in names:
        email = f"{name.lower().replace(' ', '.')}@example.com"
        participants.append(await ParticipantService.add_participant(event["id"], name, email))
    return event, participants


async def configure_template(event_id: str, image_ref: str, **overrides) -> dict:
    from certicraft.schemas.template import TemplateConfigRequest
    from certicraft.services.template_service import TemplateService

    values = {"image_ref": image_ref, "name_x": 200, "name_y": 90, "qr_x": 340, "qr_y": 150, "qr_size": 60}
    values.update(overrides)
    return await TemplateService.save_template(event_id, TemplateConfigRequest(**values))
