"""
Centralized Prometheus metrics.

All application metrics are defined here to prevent duplication
and ensure consistent labeling across modules.
"""

from prometheus_client import Counter


# ── Auth Metrics ──────────────────────────────────────────────────────────────

login_attempts = Counter(
    "auth_login_attempts_total",
    "Login attempts by outcome",
    ["outcome"]  # authenticated | invalid_credentials | account_locked
)

account_lockouts = Counter(
    "auth_account_lockouts_total",
    "Accounts locked after repeated failed logins",
)


# ── Channel Metrics ───────────────────────────────────────────────────────────

membership_changes = Counter(
    "channel_membership_changes_total",
    "Channel membership operations",
    ["action", "result"]  # add|remove, added|already_member|removed|not_member
)

messages_posted = Counter(
    "channel_messages_posted_total",
    "Messages posted to channels",
    ["message_type"]
)


# ── Admin Metrics ─────────────────────────────────────────────────────────────

admin_commands = Counter(
    "admin_commands_total",
    "Administrative commands executed",
    ["command", "status"]
)
