"""
File metadata and entity link tests.
"""

import uuid

from ceo_platform.apps.files.schemas import FileCreate, FileLinkCreate
from ceo_platform.apps.files.services import link_file, register_file
from ceo_platform.apps.messages.models import Message
from ceo_platform.apps.tasks.schemas import TaskCreate
from ceo_platform.apps.tasks.services import create_task

FILE_META = {
    "filename": "q3-report.pdf",
    "mime_type": "application/pdf",
    "size_bytes": 48213,
    "storage_url": "https://files.company.com/q3-report.pdf",
}


async def _register(client, headers, **overrides):
    resp = await client.post("/api/v1/files", json={**FILE_META, **overrides}, headers=headers)
    assert resp.status_code == 201
    return resp.json()["data"]


async def test_link_is_idempotent_and_listed_on_channel(client, make_user, make_channel, auth_headers):
    staff = await make_user()
    channel = await make_channel(members=[staff])
    headers = auth_headers(staff)
    file = await _register(client, headers)
    link_body = {"entity_type": "channel", "entity_id": str(channel.id)}

    first = await client.post(f"/api/v1/files/{file['id']}/links", json=link_body, headers=headers)
    again = await client.post(f"/api/v1/files/{file['id']}/links", json=link_body, headers=headers)

    assert first.status_code == 201
    assert first.json()["data"]["link_type"] == "attachment"
    assert again.status_code == 200
    assert again.json()["data"]["id"] == first.json()["data"]["id"]

    listing = await client.get(f"/api/v1/channels/{channel.id}/files", headers=headers)
    assert listing.status_code == 200
    data = listing.json()["data"]
    assert [f["filename"] for f in data] == ["q3-report.pdf"]
    assert data[0]["entity_type"] == "channel"
    assert listing.json()["pagination"]["total"] == 1


async def test_channel_without_files_lists_empty(client, make_user, make_channel, auth_headers):
    staff = await make_user()
    channel = await make_channel(members=[staff])

    resp = await client.get(f"/api/v1/channels/{channel.id}/files", headers=auth_headers(staff))

    assert resp.status_code == 200
    assert resp.json()["data"] == []


async def test_task_files_listing(client, session, make_user, auth_headers):
    manager = await make_user(role="manager")
    task = await create_task(session, TaskCreate(title="Budget"), manager)
    headers = auth_headers(manager)
    file = await _register(client, headers, filename="budget.xlsx", mime_type="application/vnd.ms-excel")

    await client.post(
        f"/api/v1/files/{file['id']}/links",
        json={"entity_type": "task", "entity_id": str(task.id), "link_type": "reference"},
        headers=headers,
    )

    resp = await client.get(f"/api/v1/tasks/{task.id}/files", headers=headers)
    data = resp.json()["data"]
    assert [f["filename"] for f in data] == ["budget.xlsx"]
    assert data[0]["link_type"] == "reference"


async def test_link_to_missing_entity_is_404(client, make_user, auth_headers):
    staff = await make_user()
    headers = auth_headers(staff)
    file = await _register(client, headers)

    resp = await client.post(
        f"/api/v1/files/{file['id']}/links",
        json={"entity_type": "message", "entity_id": str(uuid.uuid4())},
        headers=headers,
    )

    assert resp.status_code == 404


async def test_invalid_entity_type_rejected(client, make_user, auth_headers):
    staff = await make_user()
    headers = auth_headers(staff)
    file = await _register(client, headers)

    resp = await client.post(
        f"/api/v1/files/{file['id']}/links",
        json={"entity_type": "user", "entity_id": str(uuid.uuid4())},
        headers=headers,
    )

    assert resp.status_code == 422


async def test_non_member_cannot_link_into_channel(
    client, session, make_user, make_channel, auth_headers
):
    manager = await make_user("manager@company.com", name="Manager", role="manager")
    outsider = await make_user()
    board = await make_channel("board", members=[manager])
    message = await Message.create(
        db=session, channel_id=board.id, sender_id=manager.id, content="minutes"
    )
    headers = auth_headers(outsider)
    file = await _register(client, headers)
    url = f"/api/v1/files/{file['id']}/links"

    to_channel = await client.post(
        url, json={"entity_type": "channel", "entity_id": str(board.id)}, headers=headers
    )
    to_message = await client.post(
        url, json={"entity_type": "message", "entity_id": str(message.id)}, headers=headers
    )

    assert to_channel.status_code == 403
    assert to_message.status_code == 403


async def test_relinking_revives_soft_deleted_link(session, make_user, make_channel):
    staff = await make_user()
    channel = await make_channel(members=[staff])
    file = await register_file(session, FileCreate(**FILE_META), staff)
    data = FileLinkCreate(entity_type="channel", entity_id=channel.id)

    link, created = await link_file(session, file.id, data, staff)
    assert created
    await link.soft_delete(session)

    again, created_again = await link_file(session, file.id, data, staff)

    assert created_again
    assert again.id == link.id
    assert again.deleted_at is None
