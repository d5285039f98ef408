import asyncio
import re

import pytest

from certicraft.exceptions import EventNotFound
from certicraft.services.activity_log_service import ActivityLogService
from certicraft.services.certificate_renderer import CertificateRenderer
from certicraft.services.generation_service import GenerationService
from certicraft.services.status_tracker import StatusTracker
from tests.conftest import configure_template, create_event_with_participants, make_png

NAMES = ["Ada Lovelace", "Alan Turing", "Grace Hopper"]


async def _statuses(event_id):
    return {row["participant_name"]: row for row in await StatusTracker.status_view(event_id)}


@pytest.mark.asyncio
async def test_no_template_fails_every_participant(db, local_store):
    event, _ = await create_event_with_participants(NAMES)

    summary = await GenerationService(local_store).generate_all(event["id"])

    assert summary.attempted == 3
    assert summary.created == 0
    rows = await _statuses(event["id"])
    assert {row["generation_status"] for row in rows.values()} == {"FAILED"}
    assert {row["error_message"] for row in rows.values()} == {"Template not found"}
    logs, total = await ActivityLogService.get_event_activity_logs(event["id"])
    assert total == 0


@pytest.mark.asyncio
async def test_generation_is_idempotent(db, local_store, template_path):
    event, _ = await create_event_with_participants(NAMES)
    await configure_template(event["id"], template_path)
    service = GenerationService(local_store)

    first = await service.generate_all(event["id"], user_id="organizer-1")
    refs = {name: row for name, row in (await _statuses(event["id"])).items()}
    second = await service.generate_all(event["id"])

    assert (first.attempted, first.created) == (3, 3)
    assert (second.attempted, second.created) == (0, 0)
    after = await _statuses(event["id"])
    for name, row in after.items():
        assert row["generation_status"] == "GENERATED"
        assert row["certificate_id"] == refs[name]["certificate_id"]
        assert row["verification_id"] == refs[name]["verification_id"]
        record = await StatusTracker.get(row["certificate_id"])
        assert record["content_ref"]
        assert (await local_store.get(record["content_ref"])).startswith(b"%PDF")

    logs, total = await ActivityLogService.get_event_activity_logs(event["id"])
    assert total == 1
    assert logs[0]["action"] == "GENERATE_CERTIFICATES"
    assert logs[0]["details"] == "Generated 3 certificates"
    assert logs[0]["user_id"] == "organizer-1"


@pytest.mark.asyncio
async def test_failed_records_are_retried_in_place(db, local_store, template_path):
    event, _ = await create_event_with_participants(NAMES)
    service = GenerationService(local_store)
    await service.generate_all(event["id"])
    failed_ids = {row["certificate_id"] for row in (await _statuses(event["id"])).values()}

    await configure_template(event["id"], template_path)
    summary = await service.generate_all(event["id"])

    assert (summary.attempted, summary.created) == (3, 3)
    rows = (await _statuses(event["id"])).values()
    assert {row["certificate_id"] for row in rows} == failed_ids
    assert all(row["error_message"] is None for row in rows)


@pytest.mark.asyncio
async def test_new_participants_are_picked_up(db, local_store, template_path):
    from certicraft.services.event_service import ParticipantService

    event, _ = await create_event_with_participants(NAMES[:2])
    await configure_template(event["id"], template_path)
    service = GenerationService(local_store)
    await service.generate_all(event["id"])

    await ParticipantService.add_participant(event["id"], "Katherine Johnson", "kj@example.com")
    summary = await service.generate_all(event["id"])

    assert (summary.attempted, summary.created) == (1, 1)


@pytest.mark.asyncio
async def test_truncated_remote_template_fails_only_that_participant(db, remote_store, fake_supabase):
    event, _ = await create_event_with_participants(NAMES)
    template_bytes = make_png(400, 200, color=(240, 240, 230))
    url = fake_supabase.add_object("templates", "workshop.png", template_bytes)
    fake_supabase.serve_next(url, [template_bytes, template_bytes, template_bytes[:80]])
    await configure_template(event["id"], url)

    summary = await GenerationService(remote_store).generate_all(event["id"])

    assert summary.created == 2
    rows = list((await _statuses(event["id"])).values())
    failed = [r for r in rows if r["generation_status"] == "FAILED"]
    generated = [r for r in rows if r["generation_status"] == "GENERATED"]
    assert len(failed) == 1 and failed[0]["error_message"]
    assert len(generated) == 2
    for row in generated:
        record = await StatusTracker.get(row["certificate_id"])
        assert re.match(r"https://fake-project\.supabase\.co/storage/v1/object/public/certificates/pdfs/", record["content_ref"])
        assert (await remote_store.get(record["content_ref"])).startswith(b"%PDF")
    failed_record = await StatusTracker.get(failed[0]["certificate_id"])
    assert failed_record["content_ref"] is None


@pytest.mark.asyncio
async def test_unreachable_remote_template(db, remote_store, fake_supabase):
    event, _ = await create_event_with_participants(NAMES[:1])
    await configure_template(event["id"], "https://fake-project.supabase.co/storage/v1/object/public/templates/gone.png")

    summary = await GenerationService(remote_store).generate_all(event["id"])

    assert summary.created == 0
    row = list((await _statuses(event["id"])).values())[0]
    assert row["generation_status"] == "FAILED"
    assert row["error_message"] == "Failed to download template"


@pytest.mark.asyncio
async def test_missing_local_template_file(db, local_store, tmp_path):
    event, _ = await create_event_with_participants(NAMES[:1])
    await configure_template(event["id"], str(tmp_path / "nope.png"))

    await GenerationService(local_store).generate_all(event["id"])

    row = list((await _statuses(event["id"])).values())[0]
    assert row["error_message"] == "Template file not found"


@pytest.mark.asyncio
async def test_qr_failure_still_produces_document(db, local_store, template_path, monkeypatch):
    from certicraft.services import certificate_renderer

    monkeypatch.setattr(certificate_renderer.qr_service, "encode", lambda *args, **kwargs: None)
    renderer = CertificateRenderer(local_store)
    template = {
        "image_ref": template_path, "name_x": 200, "name_y": 100, "font_size": 30,
        "font_color": "#000000", "qr_x": 300, "qr_y": 150, "qr_size": 60
    }

    document = await renderer.render_document(template, "Jane Doe", "v-1")

    assert document.startswith(b"%PDF")
    assert len(re.findall(rb"/Type\s*/Page(?!s)", document)) == 1


@pytest.mark.asyncio
async def test_concurrent_triggers_create_one_record_per_participant(db, local_store, template_path):
    event, _ = await create_event_with_participants(NAMES)
    await configure_template(event["id"], template_path)
    service = GenerationService(local_store, concurrency=2)

    first, second = await asyncio.gather(
        service.generate_all(event["id"]),
        service.generate_all(event["id"])
    )

    assert first.created + second.created == 3
    rows = await StatusTracker.status_view(event["id"])
    assert len({row["certificate_id"] for row in rows}) == 3


@pytest.mark.asyncio
async def test_unknown_event(db, local_store):
    with pytest.raises(EventNotFound):
        await GenerationService(local_store).generate_all("missing")
