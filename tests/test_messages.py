"""
Message tests: posting, threading and paginated history.
"""

import uuid

from ceo_platform.apps.messages.models import Message


async def test_member_posts_and_reads_history(client, make_user, make_channel, auth_headers):
    staff = await make_user()
    channel = await make_channel(members=[staff])
    url = f"/api/v1/channels/{channel.id}/messages"

    for text in ("first", "second", "third"):
        resp = await client.post(url, json={"content": text}, headers=auth_headers(staff))
        assert resp.status_code == 201

    history = await client.get(url, params={"per_page": 2}, headers=auth_headers(staff))

    assert history.status_code == 200
    body = history.json()
    assert [m["content"] for m in body["data"]] == ["third", "second"]
    assert body["pagination"]["total"] == 3
    assert body["pagination"]["pages"] == 2
    assert body["pagination"]["has_next"] is True


async def test_content_is_trimmed_and_blank_rejected(client, make_user, make_channel, auth_headers):
    staff = await make_user()
    channel = await make_channel(members=[staff])
    url = f"/api/v1/channels/{channel.id}/messages"

    ok = await client.post(url, json={"content": "  hello  "}, headers=auth_headers(staff))
    assert ok.json()["data"]["content"] == "hello"

    blank = await client.post(url, json={"content": "   "}, headers=auth_headers(staff))
    assert blank.status_code == 422


async def test_system_messages_cannot_be_posted(client, make_user, make_channel, auth_headers):
    staff = await make_user()
    channel = await make_channel(members=[staff])

    resp = await client.post(
        f"/api/v1/channels/{channel.id}/messages",
        json={"content": "fake", "message_type": "system"},
        headers=auth_headers(staff),
    )

    assert resp.status_code == 422


async def test_non_member_cannot_post(client, make_user, make_channel, auth_headers):
    staff = await make_user()
    channel = await make_channel("board")

    resp = await client.post(
        f"/api/v1/channels/{channel.id}/messages",
        json={"content": "hi"},
        headers=auth_headers(staff),
    )

    assert resp.status_code == 403


async def test_reply_must_stay_in_channel(client, session, make_user, make_channel, auth_headers):
    staff = await make_user()
    here = await make_channel("here", members=[staff])
    there = await make_channel("there", members=[staff])
    parent = await Message.create(db=session, channel_id=there.id, sender_id=staff.id, content="elsewhere")
    url = f"/api/v1/channels/{here.id}/messages"

    cross = await client.post(
        url, json={"content": "reply", "parent_id": str(parent.id)}, headers=auth_headers(staff)
    )
    assert cross.status_code == 422

    missing = await client.post(
        url, json={"content": "reply", "parent_id": str(uuid.uuid4())}, headers=auth_headers(staff)
    )
    assert missing.status_code == 404

    local = await Message.create(db=session, channel_id=here.id, sender_id=staff.id, content="root")
    reply = await client.post(
        url, json={"content": "reply", "parent_id": str(local.id)}, headers=auth_headers(staff)
    )
    assert reply.status_code == 201
    assert reply.json()["data"]["parent_id"] == str(local.id)
