import io
import os
import zipfile
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from certicraft.dependencies import get_content_store, get_relay
from certicraft.main import app
from certicraft.routes.certificates import download_all_certificates
from certicraft.services.archive_service import ArchiveService
from certicraft.services.status_tracker import StatusTracker
from tests.conftest import FakeRelay, configure_template, create_event_with_participants, make_png


@pytest.fixture
def relay() -> FakeRelay:
    return FakeRelay(max_batch_size=2)


@pytest_asyncio.fixture
async def client(db, local_store, relay) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_content_store] = lambda: local_store
    app.dependency_overrides[get_relay] = lambda: relay
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


async def _event_with_template(template_ref, names=("Ada Lovelace", "Alan Turing")):
    event, participants = await create_event_with_participants(list(names))
    await configure_template(event["id"], template_ref)
    return event, participants


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_generate_and_status_view(client, template_path):
    event, _ = await _event_with_template(template_path)

    response = await client.post(f"/certificates/events/{event['id']}/generate")
    assert response.status_code == 200
    assert response.json()["attempted"] == 2
    assert response.json()["createdCount"] == 2

    again = await client.post(f"/certificates/events/{event['id']}/generate")
    assert again.json()["createdCount"] == 0

    status = await client.get(f"/certificates/events/{event['id']}/status")
    assert status.status_code == 200
    rows = status.json()
    assert len(rows) == 2
    for row in rows:
        assert row["generationStatus"] == "GENERATED"
        assert row["emailStatus"] == "NOT_SENT"
        assert row["updateEmailStatus"] == "NOT_SENT"
        assert row["id"] and row["verificationId"] and row["generatedAt"]
        assert {"participantId", "participantName", "email"} <= set(row)


@pytest.mark.asyncio
async def test_status_before_generation(client):
    event, _ = await create_event_with_participants(["Ada Lovelace"])

    rows = (await client.get(f"/certificates/events/{event['id']}/status")).json()

    assert rows[0]["id"] is None
    assert rows[0]["generationStatus"] == "NOT_GENERATED"
    assert rows[0]["emailStatus"] == "NOT_SENT"


@pytest.mark.asyncio
async def test_unknown_event_is_404(client):
    response = await client.post("/certificates/events/missing/generate")

    assert response.status_code == 404
    assert response.json()["detail"] == "Event not found"


@pytest.mark.asyncio
async def test_download_local_certificate(client, template_path):
    event, _ = await _event_with_template(template_path)
    await client.post(f"/certificates/events/{event['id']}/generate")
    certificate_id = (await StatusTracker.status_view(event["id"]))[0]["certificate_id"]

    response = await client.get(f"/certificates/{certificate_id}/download")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert f"certificate_{certificate_id}.pdf" in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


@pytest.mark.asyncio
async def test_download_remote_certificate_redirects(client, remote_store, fake_supabase):
    app.dependency_overrides[get_content_store] = lambda: remote_store
    url = fake_supabase.add_object("templates", "workshop.png", make_png())
    event, _ = await _event_with_template(url, names=("Ada Lovelace",))
    await client.post(f"/certificates/events/{event['id']}/generate")
    certificate = await StatusTracker.get((await StatusTracker.status_view(event["id"]))[0]["certificate_id"])

    response = await client.get(f"/certificates/{certificate['id']}/download")

    assert response.status_code == 307
    assert response.headers["location"] == certificate["content_ref"]


@pytest.mark.asyncio
async def test_download_ungenerated_certificate(client):
    event, _ = await create_event_with_participants(["Ada Lovelace"])
    await client.post(f"/certificates/events/{event['id']}/generate")
    certificate_id = (await StatusTracker.status_view(event["id"]))[0]["certificate_id"]

    response = await client.get(f"/certificates/{certificate_id}/download")

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_download_all_bundles_generated_certificates(client, template_path, temp_dir):
    event, _ = await _event_with_template(template_path)
    await client.post(f"/certificates/events/{event['id']}/generate")
    rows = await StatusTracker.status_view(event["id"])

    response = await client.get(f"/certificates/events/{event['id']}/download-all")

    assert response.status_code == 200
    assert f"event_{event['id']}_certificates.zip" in response.headers["content-disposition"]
    names = set(zipfile.ZipFile(io.BytesIO(response.content)).namelist())
    assert names == {
        f"certificate_{row['certificate_id']}_{row['participant_name'].replace(' ', '_')}.pdf"
        for row in rows
    }
    assert not [name for name in os.listdir(temp_dir) if name.endswith(".zip")]


@pytest.mark.asyncio
async def test_download_all_interrupted_send_leaves_no_files(client, local_store, template_path, temp_dir):
    event, _ = await _event_with_template(template_path)
    await client.post(f"/certificates/events/{event['id']}/generate")
    before = set(os.listdir(temp_dir))
    response = await download_all_certificates(event["id"], archives=ArchiveService(local_store))

    async def receive():
        return {"type": "http.request", "body": b"", "more_body": False}

    async def send(message):
        if message["type"] == "http.response.body":
            raise OSError("client disconnected")

    scope = {"type": "http", "method": "GET", "path": "/", "headers": []}
    with pytest.raises(OSError):
        await response(scope, receive, send)

    assert set(os.listdir(temp_dir)) == before


@pytest.mark.asyncio
async def test_download_all_without_generated_certificates(client):
    event, _ = await create_event_with_participants(["Ada Lovelace"])

    response = await client.get(f"/certificates/events/{event['id']}/download-all")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_send_email_and_send_all(client, relay, template_path):
    event, _ = await _event_with_template(template_path, names=("Ada Lovelace", "Alan Turing", "Grace Hopper"))
    await client.post(f"/certificates/events/{event['id']}/generate")
    certificate_id = (await StatusTracker.status_view(event["id"]))[0]["certificate_id"]

    single = await client.post(f"/certificates/{certificate_id}/send-email", headers={"X-User-Id": "organizer-1"})
    assert single.status_code == 200
    assert single.json() == {"message": "Email sent successfully"}

    relay.reject_chunks = {1}
    batch = await client.post(f"/certificates/events/{event['id']}/send-all")
    assert batch.status_code == 200
    body = batch.json()
    assert (body["total"], body["sent"], body["failed"]) == (3, 2, 1)


@pytest.mark.asyncio
async def test_send_email_relay_rejection_is_502(client, relay, template_path):
    event, _ = await _event_with_template(template_path, names=("Ada Lovelace",))
    await client.post(f"/certificates/events/{event['id']}/generate")
    certificate_id = (await StatusTracker.status_view(event["id"]))[0]["certificate_id"]
    relay.fail_single = True

    response = await client.post(f"/certificates/{certificate_id}/send-email")

    assert response.status_code == 502
    assert response.json()["detail"] == "Mailbox unavailable"


@pytest.mark.asyncio
async def test_send_updates_and_resend(client, relay):
    event, participants = await create_event_with_participants(["Ada Lovelace", "Alan Turing"])

    response = await client.post(
        f"/certificates/events/{event['id']}/send-updates",
        json={"subject": "Venue change", "content": "Room 101\nSecond floor"}
    )
    assert response.status_code == 200
    assert response.json()["sent"] == 2

    reset = await client.post(f"/certificates/participants/{participants[0]['id']}/resend-update")
    assert reset.json() == {"message": "Status reset"}
    rows = (await client.get(f"/certificates/events/{event['id']}/status")).json()
    statuses = {row["participantId"]: row["updateEmailStatus"] for row in rows}
    assert statuses == {participants[0]["id"]: "NOT_SENT", participants[1]["id"]: "SENT"}


@pytest.mark.asyncio
async def test_preview_is_not_persisted(client, template_path):
    event, _ = await _event_with_template(template_path, names=("Ada Lovelace",))

    response = await client.post(f"/certificates/events/{event['id']}/preview", json={"nameX": 150, "fontSize": 24})

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")
    rows = await StatusTracker.status_view(event["id"])
    assert rows[0]["certificate_id"] is None


@pytest.mark.asyncio
async def test_preview_without_template(client):
    event, _ = await create_event_with_participants(["Ada Lovelace"])

    response = await client.post(f"/certificates/events/{event['id']}/preview")

    assert response.status_code == 404
    assert response.json()["detail"] == "Template not found"


@pytest.mark.asyncio
async def test_verify_returns_public_fields_only(client, template_path):
    event, _ = await _event_with_template(template_path, names=("Ada Lovelace",))
    await client.post(f"/certificates/events/{event['id']}/generate")
    verification_id = (await StatusTracker.status_view(event["id"]))[0]["verification_id"]

    response = await client.get(f"/certificates/verify/{verification_id}")

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"participantName", "eventName", "organizerName", "generatedAt"}
    assert body["participantName"] == "Ada Lovelace"
    assert body["eventName"] == "Python Workshop"
    assert body["organizerName"] == "Jane Organizer"


@pytest.mark.asyncio
async def test_verify_unknown_id(client):
    response = await client.get("/certificates/verify/does-not-exist")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_template_put_and_get(client, template_path):
    event, _ = await create_event_with_participants(["Ada Lovelace"])

    saved = await client.put(
        f"/templates/events/{event['id']}",
        json={"imageRef": template_path, "nameX": 200, "nameY": 90, "fontSize": 36,
              "fontColor": "#112233", "qrX": 340, "qrY": 150, "qrSize": 60}
    )
    assert saved.status_code == 200
    assert saved.json()["fontColor"] == "#112233"

    fetched = await client.get(f"/templates/events/{event['id']}")
    assert fetched.json()["nameX"] == 200
    assert fetched.json()["eventId"] == event["id"]


@pytest.mark.asyncio
async def test_template_validation(client, template_path):
    event, _ = await create_event_with_participants(["Ada Lovelace"])

    bad_color = await client.put(f"/templates/events/{event['id']}", json={"imageRef": template_path, "fontColor": "red"})
    negative = await client.put(f"/templates/events/{event['id']}", json={"imageRef": template_path, "nameX": -5})
    tiny_qr = await client.put(f"/templates/events/{event['id']}", json={"imageRef": template_path, "qrSize": 4})

    assert bad_color.status_code == 422
    assert negative.status_code == 422
    assert tiny_qr.status_code == 422


@pytest.mark.asyncio
async def test_template_missing(client):
    event, _ = await create_event_with_participants(["Ada Lovelace"])

    response = await client.get(f"/templates/events/{event['id']}")

    assert response.status_code == 404
