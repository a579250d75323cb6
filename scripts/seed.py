"""Seed a demo practice with staff, rooms and patients.

Prints an access token for the practice admin so the API can be explored
straight away from /docs.
"""

import asyncio
from datetime import date, timedelta

from sqlalchemy import select

from gpms.core.security import create_access_token, get_password_hash
from gpms.database import AsyncSessionLocal, engine
from gpms.models import patients, practices, rooms, users
from gpms.schemas.enums import Gender, UserRole

DEMO_ODS_CODE = "Y00001"
DEMO_PASSWORD = "changeme123"

STAFF = [
    ("admin@demo-surgery.nhs.uk", "Alex", "Morgan", UserRole.PRACTICE_ADMIN),
    ("dr.patel@demo-surgery.nhs.uk", "Priya", "Patel", UserRole.GP),
    ("dr.jones@demo-surgery.nhs.uk", "Owen", "Jones", UserRole.GP),
    ("nurse.smith@demo-surgery.nhs.uk", "Claire", "Smith", UserRole.NURSE),
    ("hca.brown@demo-surgery.nhs.uk", "Sam", "Brown", UserRole.HCA),
    ("reception@demo-surgery.nhs.uk", "Jo", "Taylor", UserRole.RECEPTIONIST),
]

ROOMS = [
    ("Consulting Room 1", "Ground floor"),
    ("Consulting Room 2", "Ground floor"),
    ("Treatment Room", "Phlebotomy and dressings"),
]

PATIENTS = [
    ("9434765919", "Mr", "John", "Smith", date(1958, 4, 12), Gender.MALE),
    ("9434765870", "Mrs", "Mary", "Williams", date(1972, 9, 3), Gender.FEMALE),
    ("9434765828", "Ms", "Aisha", "Khan", date(1990, 1, 21), Gender.FEMALE),
    ("9434765790", "Mr", "David", "Evans", date(1985, 6, 30), Gender.MALE),
]


async def seed() -> None:
    """Insert the demo practice unless it already exists."""
    async with AsyncSessionLocal() as session:
        existing = await session.execute(
            select(practices.c.id).where(practices.c.ods_code == DEMO_ODS_CODE)
        )
        if existing.scalar() is not None:
            print("Demo practice already seeded, nothing to do.")
            return

        result = await session.execute(
            practices.insert()
            .values(
                name="Demo Surgery",
                ods_code=DEMO_ODS_CODE,
                address="1 High Street, Anytown",
                phone="01234 567890",
                timezone="Europe/London",
                email="enquiries@demo-surgery.nhs.uk",
            )
            .returning(practices.c.id)
        )
        practice_id = result.scalar_one()

        password_hash = get_password_hash(DEMO_PASSWORD)
        staff_ids = {}
        for email, first_name, last_name, role in STAFF:
            result = await session.execute(
                users.insert()
                .values(
                    practice_id=practice_id,
                    email=email,
                    password_hash=password_hash,
                    first_name=first_name,
                    last_name=last_name,
                    role=role.value,
                )
                .returning(users.c.id)
            )
            staff_ids[email] = result.scalar_one()

        for name, description in ROOMS:
            await session.execute(
                rooms.insert().values(practice_id=practice_id, name=name, description=description)
            )

        gp_id = staff_ids["dr.patel@demo-surgery.nhs.uk"]
        for nhs_number, title, first_name, last_name, dob, gender in PATIENTS:
            await session.execute(
                patients.insert().values(
                    practice_id=practice_id,
                    nhs_number=nhs_number,
                    title=title,
                    first_name=first_name,
                    last_name=last_name,
                    date_of_birth=dob,
                    gender=gender.value,
                    registered_gp_id=gp_id,
                )
            )

        await session.commit()

    await engine.dispose()

    admin_id = staff_ids["admin@demo-surgery.nhs.uk"]
    token = create_access_token(
        admin_id,
        practice_id,
        UserRole.PRACTICE_ADMIN,
        expires_delta=timedelta(days=1),
    )

    print("✓ Demo practice seeded")
    print(f"  Practice ID: {practice_id}")
    print(f"  Staff password: {DEMO_PASSWORD}")
    print(f"  Admin token (24h): {token}")


if __name__ == "__main__":
    asyncio.run(seed())
