"""
Administrative command tests.

Commands run against the test database through `run(args, session_factory)`;
their JSON output is read back from stdout.
"""

import json

import pytest
from sqlalchemy import text

from ceo_platform.apps.admin import commands
from ceo_platform.apps.admin.commands import EXIT_NOT_FOUND, EXIT_OK, EXIT_REJECTED, build_parser, redact, run
from ceo_platform.apps.users.services import find_by_email, soft_delete_user, verify_credentials
from ceo_platform.db.base_model import utcnow


async def _run(argv, session_factory, capsys):
    code = await run(build_parser().parse_args(argv), session_factory=session_factory)
    out = capsys.readouterr().out
    return code, json.loads(out[out.index("{\n"):])


async def test_restore_user_then_login(session, session_factory, make_user, capsys):
    user = await make_user("alex.ceo@company.com", name="Alex Morgan", role="ceo")
    await soft_delete_user(session, user.id)

    code, payload = await _run(["restore-user", "--email", "alex.ceo@company.com"], session_factory, capsys)

    assert code == EXIT_OK
    assert payload["status"] == "ok"
    assert payload["result"]["user"]["deleted_at"] is None
    async with session_factory() as fresh:
        check = await verify_credentials(fresh, "alex.ceo@company.com", "Password123!")
        assert check.authenticated
        assert check.user.role == "ceo"


async def test_restore_unknown_user_exits_not_found(session_factory, capsys):
    code, payload = await _run(["restore-user", "--email", "nobody@company.com"], session_factory, capsys)

    assert code == EXIT_NOT_FOUND
    assert payload["status"] == "not_found"


async def test_reset_password_clears_lock(session, session_factory, make_user, capsys):
    user = await make_user()
    user.failed_login_attempts = 5
    user.account_locked_until = utcnow()
    await user.save(session)

    code, payload = await _run(
        ["reset-password", "--email", "sam@company.com", "--password", "Fresh-Passw0rd"],
        session_factory,
        capsys,
    )

    assert code == EXIT_OK
    assert payload["result"]["user"]["failed_login_attempts"] == 0
    async with session_factory() as fresh:
        assert (await verify_credentials(fresh, "sam@company.com", "Fresh-Passw0rd")).authenticated
        assert not (await verify_credentials(fresh, "sam@company.com", "Password123!")).authenticated


async def test_reset_password_prompts_when_not_given(session_factory, make_user, capsys, monkeypatch):
    await make_user()
    monkeypatch.setattr(commands.getpass, "getpass", lambda prompt="": "Prompted-Pass1")

    code, _ = await _run(["reset-password", "--email", "sam@company.com"], session_factory, capsys)

    assert code == EXIT_OK
    async with session_factory() as fresh:
        assert (await verify_credentials(fresh, "sam@company.com", "Prompted-Pass1")).authenticated


async def test_reset_password_rejects_short_password(session_factory, make_user, capsys):
    await make_user()

    code, payload = await _run(
        ["reset-password", "--email", "sam@company.com", "--password", "short"], session_factory, capsys
    )

    assert code == EXIT_REJECTED
    assert payload["status"] == "rejected"


async def test_unlock_user(session, session_factory, make_user, capsys):
    user = await make_user()
    user.failed_login_attempts = 5
    user.account_locked_until = utcnow()
    await user.save(session)

    code, _ = await _run(["unlock-user", "--email", "sam@company.com"], session_factory, capsys)

    assert code == EXIT_OK
    async with session_factory() as fresh:
        unlocked = await find_by_email(fresh, "sam@company.com")
        assert unlocked.account_locked_until is None


async def test_add_member_to_all_channels_twice(session_factory, make_user, make_channel, member_ids, capsys):
    user = await make_user()
    general = await make_channel("general")
    random_chat = await make_channel("random")
    argv = ["add-member", "--email", "sam@company.com", "--all-channels"]

    code, first = await _run(argv, session_factory, capsys)
    assert code == EXIT_OK
    assert [c["result"] for c in first["result"]["channels"]] == ["added", "added"]

    code, second = await _run(argv, session_factory, capsys)
    assert [c["result"] for c in second["result"]["channels"]] == ["already_member", "already_member"]

    async with session_factory() as fresh:
        assert await member_ids(fresh, general.id) == [user.id]
        assert await member_ids(fresh, random_chat.id) == [user.id]


async def test_add_member_unknown_channel(session_factory, make_user, capsys):
    await make_user()

    code, payload = await _run(
        ["add-member", "--email", "sam@company.com", "--channel-id", "00000000-0000-0000-0000-000000000001"],
        session_factory,
        capsys,
    )

    assert code == EXIT_NOT_FOUND
    assert payload["error"] == "Channel not found."


def test_add_member_requires_a_target():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["add-member", "--email", "sam@company.com"])


async def test_create_user_and_duplicate(session_factory, capsys):
    argv = ["create-user", "--email", "Nina@Company.com", "--name", "Nina Park", "--role", "manager"]

    code, payload = await _run(argv, session_factory, capsys)
    assert code == EXIT_OK
    assert payload["result"]["user"]["email"] == "nina@company.com"

    code, payload = await _run(argv, session_factory, capsys)
    assert code == EXIT_REJECTED


async def test_create_user_invalid_email(session_factory, capsys):
    code, payload = await _run(
        ["create-user", "--email", "not-an-email", "--name", "Nobody"], session_factory, capsys
    )

    assert code == EXIT_REJECTED
    assert any(err.startswith("email") for err in payload["error"])


async def test_backfill_defaults_twice(session_factory, make_user, capsys):
    await make_user("a@company.com")
    await make_user("b@company.com")

    code, first = await _run(["backfill-defaults", "--seed", "3"], session_factory, capsys)
    code_again, second = await _run(["backfill-defaults", "--seed", "3"], session_factory, capsys)

    assert (code, code_again) == (EXIT_OK, EXIT_OK)
    assert first["result"]["users_updated"] == 2
    assert second["result"]["users_updated"] == 0


async def test_link_categories(session_factory, capsys):
    code, payload = await _run(["link-categories"], session_factory, capsys)

    assert code == EXIT_OK
    assert payload["result"]["channels_updated"] == 0


async def test_check_schema_matches_models(session_factory, capsys):
    code, payload = await _run(["check-schema"], session_factory, capsys)

    assert code == EXIT_OK
    assert payload["result"]["ok"] is True
    assert payload["result"]["missing_tables"] == []


async def test_check_schema_reports_missing_table(session, session_factory, capsys):
    await session.execute(text("DROP TABLE task_comments"))
    await session.commit()

    code, payload = await _run(["check-schema"], session_factory, capsys)

    assert code == EXIT_REJECTED
    assert payload["result"]["missing_tables"] == ["task_comments"]


def test_redact_hides_passwords():
    args = build_parser().parse_args(["reset-password", "--email", "sam@company.com", "--password", "s3cret!!"])

    safe = redact(args)

    assert safe["password"] == "***"
    assert safe["email"] == "sam@company.com"
    assert "handler" not in safe
