"""
Seed a demo account: user code, bound smoke detectors and push tokens.
Accounts are never created by the API; use this (or SQL) to provision them.

Usage (from repo root):
  cd backend && .venv/bin/python scripts/seed_demo_account.py --code DEMO01 \
      --device shellysmoke-1 --device shellysmoke-2 --token <fcm-token>

Run again with the same code to add devices or tokens; existing rows are kept.
"""
import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.ext.asyncio import AsyncSession

from alarmhub.infra.db.base import Base, dispose_engine, get_engine, get_sessionmaker
from alarmhub.infra.db import models  # noqa: F401
from alarmhub.infra.db.repositories.account_repo import AccountRepository, normalize_code
from alarmhub.infra.db.repositories.device_repo import DeviceRepository
from alarmhub.infra.db.repositories.push_token_repo import PushTokenRepository

DEFAULT_CODE = "DEMO01"


async def run_seed(session: AsyncSession, code: str, device_ids=(), tokens=()) -> dict:
    """Create the account if missing, bind devices, register tokens. Returns a summary."""
    code = normalize_code(code)
    accounts = AccountRepository(session)
    created = False
    if not await accounts.exists(code):
        await accounts.create(code)
        created = True

    devices = DeviceRepository(session)
    bound, skipped = [], []
    for device_id in device_ids:
        owner = await devices.get_owner(device_id)
        if owner is None:
            owner, _ = await devices.bind(device_id, code)
        if owner == code:
            bound.append(device_id)
        else:
            skipped.append(device_id)

    token_repo = PushTokenRepository(session)
    for token in tokens:
        await token_repo.upsert_by_token(code, token, platform="android")

    return {
        "code": code,
        "created": created,
        "devices": bound,
        "skipped_devices": skipped,
        "tokens": len(tokens),
    }


async def seed_demo_account(code: str, device_ids, tokens, create_tables: bool = False):
    """CLI entrypoint: open session, run_seed, print."""
    if create_tables:
        async with get_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    async with get_sessionmaker()() as session:
        result = await run_seed(session, code, device_ids, tokens)
    await dispose_engine()

    print(f"\n✅ Account {result['code']} {'created' if result['created'] else 'already existed'}.")
    print(f"   Devices bound: {result['devices']}")
    if result["skipped_devices"]:
        print(f"   ⚠️  Owned by another account (left alone): {result['skipped_devices']}")
    print(f"   Push tokens registered: {result['tokens']}")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--code", default=DEFAULT_CODE, help="6-character user code")
    parser.add_argument("--device", action="append", default=[], help="device id to bind (repeatable)")
    parser.add_argument("--token", action="append", default=[], help="FCM token to register (repeatable)")
    parser.add_argument("--create-tables", action="store_true", help="create tables first (no Alembic)")
    args = parser.parse_args()
    asyncio.run(seed_demo_account(args.code, args.device, args.token, args.create_tables))


if __name__ == "__main__":
    main()
