"""
Task tests: creation rules, status transitions and comments.
"""

from ceo_platform.apps.tasks.schemas import TaskCreate, TaskUpdate
from ceo_platform.apps.tasks.services import create_task, list_tasks, update_task


async def test_done_sets_and_reopen_clears_completed_at(session, make_user):
    manager = await make_user(role="manager")
    task = await create_task(session, TaskCreate(title="Quarterly report"), manager)
    assert task.status == "todo"
    assert task.completed_at is None

    done = await update_task(session, task.id, TaskUpdate(status="done"), manager)
    assert done.completed_at is not None

    reopened = await update_task(session, task.id, TaskUpdate(status="in_progress"), manager)
    assert reopened.completed_at is None


async def test_partial_update_leaves_other_fields(session, make_user):
    manager = await make_user(role="manager")
    task = await create_task(
        session, TaskCreate(title="Hire", description="Two engineers", priority="high"), manager
    )

    updated = await update_task(session, task.id, TaskUpdate(title="Hire team"), manager)

    assert updated.title == "Hire team"
    assert updated.description == "Two engineers"
    assert updated.priority == "high"


async def test_http_staff_cannot_create_tasks(client, make_user, auth_headers):
    staff = await make_user()

    resp = await client.post("/api/v1/tasks", json={"title": "x"}, headers=auth_headers(staff))

    assert resp.status_code == 403


async def test_http_staff_cannot_reassign(client, session, make_user, auth_headers):
    manager = await make_user("manager@company.com", name="Manager", role="manager")
    staff = await make_user()
    task = await create_task(session, TaskCreate(title="Audit", assignee_id=staff.id), manager)

    resp = await client.patch(
        f"/api/v1/tasks/{task.id}",
        json={"assignee_id": str(manager.id)},
        headers=auth_headers(staff),
    )
    assert resp.status_code == 403

    resp = await client.patch(
        f"/api/v1/tasks/{task.id}", json={"status": "review"}, headers=auth_headers(staff)
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "review"


async def test_http_list_filters_by_assignee(client, session, make_user, auth_headers):
    manager = await make_user("manager@company.com", name="Manager", role="manager")
    staff = await make_user()
    await create_task(session, TaskCreate(title="Mine", assignee_id=staff.id), manager)
    await create_task(session, TaskCreate(title="Unassigned"), manager)

    resp = await client.get(
        "/api/v1/tasks", params={"assignee_id": str(staff.id)}, headers=auth_headers(staff)
    )

    assert resp.status_code == 200
    assert [t["title"] for t in resp.json()["data"]] == ["Mine"]


async def test_http_comments_oldest_first(client, session, make_user, auth_headers):
    manager = await make_user(role="manager")
    task = await create_task(session, TaskCreate(title="Plan"), manager)
    url = f"/api/v1/tasks/{task.id}/comments"

    for text in ("one", "two"):
        resp = await client.post(url, json={"content": text}, headers=auth_headers(manager))
        assert resp.status_code == 201

    resp = await client.get(url, headers=auth_headers(manager))
    assert [c["content"] for c in resp.json()["data"]] == ["one", "two"]


async def test_http_invalid_status_rejected(client, session, make_user, auth_headers):
    manager = await make_user(role="manager")
    task = await create_task(session, TaskCreate(title="Plan"), manager)

    resp = await client.patch(
        f"/api/v1/tasks/{task.id}", json={"status": "archived"}, headers=auth_headers(manager)
    )

    assert resp.status_code == 422


async def test_http_channel_tasks_hidden_from_non_members(
    client, session, make_user, make_channel, auth_headers
):
    manager = await make_user("manager@company.com", name="Manager", role="manager")
    outsider = await make_user()
    board = await make_channel("board", members=[manager])
    private = await create_task(session, TaskCreate(title="Board prep", channel_id=board.id), manager)
    await create_task(session, TaskCreate(title="Company-wide"), manager)
    headers = auth_headers(outsider)

    listing = await client.get("/api/v1/tasks", headers=headers)
    assert [t["title"] for t in listing.json()["data"]] == ["Company-wide"]
    assert listing.json()["pagination"]["total"] == 1

    url = f"/api/v1/tasks/{private.id}"
    assert (await client.get(url, headers=headers)).status_code == 403
    assert (await client.patch(url, json={"status": "review"}, headers=headers)).status_code == 403
    assert (await client.get(f"{url}/comments", headers=headers)).status_code == 403
    assert (
        await client.post(f"{url}/comments", json={"content": "peek"}, headers=headers)
    ).status_code == 403
    assert (await client.get(f"{url}/files", headers=headers)).status_code == 403


async def test_http_channel_member_sees_channel_tasks(
    client, session, make_user, make_channel, auth_headers
):
    manager = await make_user("manager@company.com", name="Manager", role="manager")
    staff = await make_user()
    board = await make_channel("board", members=[manager, staff])
    task = await create_task(session, TaskCreate(title="Board prep", channel_id=board.id), manager)
    headers = auth_headers(staff)

    listing = await client.get("/api/v1/tasks", headers=headers)
    assert [t["title"] for t in listing.json()["data"]] == ["Board prep"]

    resp = await client.patch(f"/api/v1/tasks/{task.id}", json={"status": "review"}, headers=headers)
    assert resp.status_code == 200


async def test_ceo_lists_every_task(session, make_user, make_channel):
    ceo = await make_user("alex.ceo@company.com", name="Alex Morgan", role="ceo")
    manager = await make_user("manager@company.com", name="Manager", role="manager")
    board = await make_channel("board", members=[manager])
    await create_task(session, TaskCreate(title="Board prep", channel_id=board.id), manager)

    result = await list_tasks(session, user=ceo)

    assert [t.title for t in result["items"]] == ["Board prep"]
