"""
Channel store tests: membership, listing, access and read tracking.
"""

import uuid

import pytest
from sqlalchemy import func, select

from ceo_platform.apps.channels.models import Category, ChannelMember, ChannelReadStatus
from ceo_platform.apps.channels.services import (
    MembershipChange,
    add_member,
    count_unread,
    link_categories_by_type,
    list_channels,
    list_members,
    mark_read,
    remove_member,
    soft_delete_channel,
)
from ceo_platform.apps.messages.models import Message
from ceo_platform.apps.users.services import soft_delete_user
from ceo_platform.utils.exceptions import ChannelNotFoundException, UserNotFoundException


# ── Membership ────────────────────────────────────────────────────────────────

async def test_add_member_to_empty_channel_is_idempotent(session, make_user, make_channel, member_ids):
    user_a = await make_user("a@company.com", name="User A")
    general = await make_channel("general")
    assert await member_ids(session, general.id) == []

    assert await add_member(session, general.id, user_a.id) is MembershipChange.ADDED
    assert await member_ids(session, general.id) == [user_a.id]

    assert await add_member(session, general.id, user_a.id) is MembershipChange.ALREADY_MEMBER
    assert await member_ids(session, general.id) == [user_a.id]

    rows = await session.execute(
        select(func.count()).select_from(ChannelMember).where(ChannelMember.channel_id == general.id)
    )
    assert rows.scalar_one() == 1


async def test_add_member_bumps_channel_updated_at(session, make_user, make_channel):
    user = await make_user()
    channel = await make_channel()
    before = channel.updated_at

    await add_member(session, channel.id, user.id)

    assert channel.updated_at > before


async def test_add_member_missing_channel_or_user(session, make_user, make_channel):
    user = await make_user()
    channel = await make_channel()

    with pytest.raises(ChannelNotFoundException):
        await add_member(session, uuid.uuid4(), user.id)
    with pytest.raises(UserNotFoundException):
        await add_member(session, channel.id, uuid.uuid4())


async def test_add_member_rejects_soft_deleted_user(session, make_user, make_channel):
    user = await make_user()
    channel = await make_channel()
    await soft_delete_user(session, user.id)

    with pytest.raises(UserNotFoundException):
        await add_member(session, channel.id, user.id)


async def test_remove_member(session, make_user, make_channel, member_ids):
    user = await make_user()
    channel = await make_channel(members=[user])

    assert await remove_member(session, channel.id, user.id) is MembershipChange.REMOVED
    assert await remove_member(session, channel.id, user.id) is MembershipChange.NOT_MEMBER
    assert await member_ids(session, channel.id) == []


async def test_list_members_hides_deleted_users(session, make_user, make_channel):
    alice = await make_user("alice@company.com", name="Alice")
    bob = await make_user("bob@company.com", name="Bob")
    channel = await make_channel(members=[alice, bob])
    await soft_delete_user(session, bob.id)

    members = await list_members(session, channel.id)

    assert [m["email"] for m in members] == ["alice@company.com"]
    assert members[0]["role"] == "member"


# ── Listing ───────────────────────────────────────────────────────────────────

async def test_list_channels_ordered_by_name_without_deleted(session, make_channel):
    await make_channel("sales")
    await make_channel("announcements")
    old = await make_channel("archive")
    await soft_delete_channel(session, old.id)

    names = [c.name for c in await list_channels(session)]
    assert names == ["announcements", "sales"]

    names = [c.name for c in await list_channels(session, include_deleted=True)]
    assert names == ["announcements", "archive", "sales"]


async def test_list_channels_for_staff_shows_only_memberships(session, make_user, make_channel):
    staff = await make_user(role="staff")
    ceo = await make_user("alex.ceo@company.com", name="Alex", role="ceo")
    await make_channel("general", members=[staff])
    await make_channel("board")

    assert [c.name for c in await list_channels(session, user=staff)] == ["general"]
    assert [c.name for c in await list_channels(session, user=ceo)] == ["board", "general"]


async def test_link_categories_by_type(session, make_channel):
    announcements = await Category.create(db=session, name="Announcements")
    projects = await Category.create(db=session, name="Projects")
    news = await make_channel("news", channel_type="announcement")
    launch = await make_channel("launch", channel_type="initiative")
    chat = await make_channel("chat", channel_type="group")

    assert await link_categories_by_type(session) == 2
    assert news.category_id == announcements.id
    assert launch.category_id == projects.id
    assert chat.category_id is None

    assert await link_categories_by_type(session) == 0


# ── Read status ───────────────────────────────────────────────────────────────

async def test_unread_counts_messages_from_others(session, make_user, make_channel):
    me = await make_user("me@company.com", name="Me")
    other = await make_user("other@company.com", name="Other")
    channel = await make_channel(members=[me, other])

    await Message.create(db=session, channel_id=channel.id, sender_id=other.id, content="hi")
    await Message.create(db=session, channel_id=channel.id, sender_id=me.id, content="hello")
    assert await count_unread(session, channel.id, me.id) == 1

    await mark_read(session, channel.id, me.id)
    assert await count_unread(session, channel.id, me.id) == 0

    await Message.create(db=session, channel_id=channel.id, sender_id=other.id, content="news")
    assert await count_unread(session, channel.id, me.id) == 1


async def test_mark_read_twice_keeps_one_marker(session, make_user, make_channel):
    me = await make_user()
    channel = await make_channel(members=[me])

    await mark_read(session, channel.id, me.id)
    message = await Message.create(db=session, channel_id=channel.id, sender_id=me.id, content="x")
    status = await mark_read(session, channel.id, me.id, message_id=message.id)

    assert status.last_read_message_id == message.id
    assert status.last_read_at == message.created_at
    rows = await session.execute(
        select(func.count())
        .select_from(ChannelReadStatus)
        .where(ChannelReadStatus.channel_id == channel.id, ChannelReadStatus.user_id == me.id)
    )
    assert rows.scalar_one() == 1


# ── HTTP ──────────────────────────────────────────────────────────────────────

async def test_http_add_member_reports_outcome(client, make_user, make_channel, auth_headers):
    manager = await make_user("manager@company.com", name="Manager", role="manager")
    user_a = await make_user("a@company.com", name="User A")
    channel = await make_channel("general")
    url = f"/api/v1/channels/{channel.id}/members"

    first = await client.post(url, json={"user_id": str(user_a.id)}, headers=auth_headers(manager))
    second = await client.post(url, json={"user_id": str(user_a.id)}, headers=auth_headers(manager))

    assert first.status_code == 201
    assert first.json()["data"]["result"] == "added"
    assert second.status_code == 200
    assert second.json()["data"]["result"] == "already_member"

    members = await client.get(url, headers=auth_headers(manager))
    # The manager is not a member and holds no wildcard.
    assert members.status_code == 403


async def test_http_staff_cannot_manage_members(client, make_user, make_channel, auth_headers):
    staff = await make_user()
    channel = await make_channel(members=[staff])

    resp = await client.post(
        f"/api/v1/channels/{channel.id}/members",
        json={"user_id": str(staff.id)},
        headers=auth_headers(staff),
    )

    assert resp.status_code == 403
    assert resp.json()["code"] == "FORBIDDEN"


async def test_http_create_channel_makes_creator_owner(client, make_user, auth_headers):
    manager = await make_user("manager@company.com", name="Manager", role="manager")

    resp = await client.post(
        "/api/v1/channels",
        json={"name": "ops", "channel_type": "department"},
        headers=auth_headers(manager),
    )
    assert resp.status_code == 201
    channel_id = resp.json()["data"]["id"]

    members = await client.get(f"/api/v1/channels/{channel_id}/members", headers=auth_headers(manager))
    assert members.status_code == 200
    assert members.json()["data"][0]["role"] == "owner"


async def test_http_non_member_cannot_open_channel(client, make_user, make_channel, auth_headers):
    staff = await make_user()
    channel = await make_channel("board")

    resp = await client.get(f"/api/v1/channels/{channel.id}", headers=auth_headers(staff))

    assert resp.status_code == 403


async def test_http_unknown_channel_is_404(client, make_user, auth_headers):
    ceo = await make_user(role="ceo")

    resp = await client.get(f"/api/v1/channels/{uuid.uuid4()}", headers=auth_headers(ceo))

    assert resp.status_code == 404
    assert resp.json()["code"] == "NOT_FOUND"


async def test_http_only_ceo_deletes_channels(client, make_user, make_channel, auth_headers):
    manager = await make_user("manager@company.com", name="Manager", role="manager")
    ceo = await make_user("alex.ceo@company.com", name="Alex", role="ceo")
    channel = await make_channel("temp", members=[manager])

    denied = await client.delete(f"/api/v1/channels/{channel.id}", headers=auth_headers(manager))
    assert denied.status_code == 403

    deleted = await client.delete(f"/api/v1/channels/{channel.id}", headers=auth_headers(ceo))
    assert deleted.status_code == 200

    listing = await client.get("/api/v1/channels", headers=auth_headers(ceo))
    assert listing.json()["data"] == []


async def test_http_read_and_unread(client, session, make_user, make_channel, auth_headers):
    me = await make_user("me@company.com", name="Me")
    other = await make_user("other@company.com", name="Other")
    channel = await make_channel(members=[me, other])
    message = await Message.create(db=session, channel_id=channel.id, sender_id=other.id, content="hi")

    unread = await client.get(f"/api/v1/channels/{channel.id}/unread", headers=auth_headers(me))
    assert unread.json()["data"]["unread_count"] == 1

    read = await client.post(
        f"/api/v1/channels/{channel.id}/read",
        json={"message_id": str(message.id)},
        headers=auth_headers(me),
    )
    assert read.status_code == 200
    assert read.json()["data"]["unread_count"] == 0
    assert read.json()["data"]["last_read_message_id"] == str(message.id)
