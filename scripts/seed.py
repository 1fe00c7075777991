"""
Seed database script.

Populates default categories, one account per role and a few starter
channels with everyone in them. Safe to run repeatedly.

Usage:
    python scripts/seed.py --password 'Password123!'
"""

import argparse
import asyncio

from ceo_platform.apps.channels.models import Category, Channel
from ceo_platform.apps.channels.services import add_member, link_categories_by_type
from ceo_platform.apps.users.schemas import UserCreate
from ceo_platform.apps.users.services import create_user, find_by_email
from ceo_platform.db.database import async_session_factory, dispose_engine
from ceo_platform.utils.exceptions import UserNotFoundException
from ceo_platform.utils.logger import get_logger

logger = get_logger(__name__)

CATEGORIES_TO_SEED = [
    {"name": "General", "color": "#6B7280"},
    {"name": "Announcements", "color": "#DC2626"},
    {"name": "Departments", "color": "#2563EB"},
    {"name": "Projects", "color": "#059669"},
]

USERS_TO_SEED = [
    {"email": "alex.ceo@company.com", "name": "Alex Morgan", "role": "ceo", "department": "Executive"},
    {"email": "jordan.ops@company.com", "name": "Jordan Lee", "role": "manager", "department": "Operations"},
    {"email": "sam.staff@company.com", "name": "Sam Patel", "role": "staff", "department": "Operations"},
]

CHANNELS_TO_SEED = [
    {"name": "general", "channel_type": "group", "description": "Company-wide discussion"},
    {"name": "announcements", "channel_type": "announcement", "description": "Updates from leadership"},
    {"name": "operations", "channel_type": "department", "description": "Operations team"},
]


async def seed(password: str) -> None:
    async with async_session_factory() as session:
        logger.info("Starting database seed process...")

        for category in CATEGORIES_TO_SEED:
            if await Category.find_one(session, name=category["name"]) is None:
                await Category.create(db=session, **category)
                logger.info(f"Created category: {category['name']}")

        users = []
        for user_data in USERS_TO_SEED:
            try:
                user = await find_by_email(session, user_data["email"])
                logger.info(f"User {user_data['email']} already exists. Skipping.")
            except UserNotFoundException:
                user = await create_user(
                    session, UserCreate(**user_data, password=password, email_verified=True)
                )
            users.append(user)

        ceo = users[0]
        for channel_data in CHANNELS_TO_SEED:
            channel = await Channel.find_one(session, name=channel_data["name"])
            if channel is None:
                channel = await Channel.create(db=session, created_by=ceo.id, **channel_data)
                logger.info(f"Created channel: {channel.name}")
            for user in users:
                await add_member(session, channel.id, user.id, role="owner" if user is ceo else "member")

        await link_categories_by_type(session)
        logger.info("Database seeded successfully")


async def main() -> None:
    parser = argparse.ArgumentParser(description="Seed categories, users and channels.")
    parser.add_argument("--password", required=True, help="Password for every seeded account.")
    args = parser.parse_args()
    try:
        await seed(args.password)
    finally:
        await dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
