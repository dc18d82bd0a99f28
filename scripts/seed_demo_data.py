"""
Seed demo data for local TravelCRM testing.

Usage:
    python scripts/seed_demo_data.py

Or with custom DATABASE_URL:
    DATABASE_URL="postgresql+asyncpg://..." python scripts/seed_demo_data.py

This script creates:
- The manager account (from MANAGER_EMAIL / MANAGER_PASSWORD)
- One sales and one data entry employee
- Exchange rates
- Clients in several pipeline stages, one of them sold
"""

import argparse
import asyncio
import os
import sys
from decimal import Decimal

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from travelcrm.db import get_db_context
from travelcrm.errors import AlreadyExists
from travelcrm.main import bootstrap
from travelcrm.models import AuditAction, User, UserRole
from travelcrm.services import accounts, lifecycle, store
from travelcrm.utils.clock import business_now

DEMO_PASSWORD = "demo123"

DEMO_EMPLOYEES = [
    {"email": "sales@demo.local", "name": "Sara", "role": "sales", "salary": "3000"},
    {"email": "entry@demo.local", "name": "Dina", "role": "dataentry", "salary": "2500"},
]

DEMO_CLIENTS = [
    {"source": "facebook", "client_name": "Ahmed Hassan", "whatsapp_number": "+201000000001",
     "departure_airport": "CAI", "arrival_airport": "JED"},
    {"source": "instagram", "client_name": "Mariam Adel", "whatsapp_number": "+201000000002",
     "departure_airport": "HBE", "arrival_airport": "RUH"},
    {"source": "referral", "client_name": "Youssef Ali", "whatsapp_number": "+201000000003"},
]


async def get_manager(db) -> User:
    result = await db.execute(select(User).where(User.role == UserRole.MANAGER).limit(1))
    return result.scalar_one()


async def create_demo_employees(manager: User) -> None:
    for employee in DEMO_EMPLOYEES:
        try:
            await accounts.create_employee(manager, password=DEMO_PASSWORD, **employee)
            print(f"Created {employee['role']}: {employee['email']} / {DEMO_PASSWORD}")
        except AlreadyExists:
            print(f"{employee['email']} already exists")


async def seed_all(buy_rate: str, sell_rate: str) -> None:
    """Seed all demo data."""
    await bootstrap()

    async with get_db_context() as db:
        manager = await get_manager(db)

    await create_demo_employees(manager)

    async with get_db_context() as db:
        sales = await store.get_user_by_email(db, "sales@demo.local")
        entry = await store.get_user_by_email(db, "entry@demo.local")

        current = await store.load_exchange_rates(db)
        rates = lifecycle.validate_exchange_rates(buy_rate, sell_rate, manager, current)
        await store.save_exchange_rates(db, rates, manager.id)
        print(f"Exchange rates: buy={rates.buy_rate} sell={rates.sell_rate}")

        clients = []
        for data in DEMO_CLIENTS:
            values = lifecycle.build_new_client(data, entry, business_now())
            clients.append(await store.create_client(db, values, entry.id))
        print(f"Created {len(clients)} clients")

        first, second = clients[0], clients[1]
        patches = lifecycle.request_bulk_assignment([first, second], sales, manager, business_now())
        await store.apply_client_patches(db, patches, manager.id, AuditAction.BULK_ASSIGN)
        first = await store.get_client_or_404(db, first.id)
        second = await store.get_client_or_404(db, second.id)

        patch = lifecycle.request_status_change(
            first,
            "followUp",
            sales,
            lifecycle.StatusChangePayload(note="Asked for Umrah packages in December"),
            now=business_now(),
        )
        await store.apply_client_patch(db, patch, sales.id, AuditAction.CHANGE_STATUS)

        patch = lifecycle.request_status_change(
            second,
            "sold",
            sales,
            lifecycle.StatusChangePayload(
                note="Paid in full",
                sale=lifecycle.SaleBreakdown(Decimal("900"), Decimal("9000"), "SAR", "EGP"),
            ),
            rates,
            business_now(),
        )
        await store.apply_client_patch(db, patch, sales.id, AuditAction.CHANGE_STATUS)

    print("\nDemo data created. Log in as the manager or as sales@demo.local / demo123")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed demo data for TravelCRM")
    parser.add_argument("--buy-rate", default="8.0", help="SAR to EGP buy rate")
    parser.add_argument("--sell-rate", default="8.5", help="SAR to EGP sell rate")

    args = parser.parse_args()

    asyncio.run(seed_all(args.buy_rate, args.sell_rate))
