"""
Bootstrap an admin account.

    python -m jaromind.auth.create_admin --email admin@jaromind.com --name "Super Admin"

The password is read from --password or prompted for.
"""

import argparse
import asyncio
import getpass
import logging

from jaromind.auth.service import create_admin
from jaromind.config import Settings
from jaromind.database import create_client
from jaromind.errors import Conflict

logger = logging.getLogger(__name__)


async def _run(settings: Settings, email: str, password: str, name: str) -> str:
    client = create_client(settings)
    try:
        return await create_admin(client[settings.db_name], email, password, name)
    finally:
        client.close()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create an active admin account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", default="Super Admin")
    parser.add_argument("--password")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    settings = Settings.from_env()
    password = args.password or getpass.getpass("Admin password: ")

    try:
        admin_id = asyncio.run(_run(settings, args.email, password, args.name))
    except Conflict as e:
        logger.error(e.message)
        return 1

    logger.info("Created admin %s (%s)", args.email, admin_id)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
