"""
Seed the default carrier set for development.
Run: python -m scripts.seed_carriers  (from backend/)

Skips seeding when any carrier already exists.
"""

import asyncio

from clarence.core.config import settings
from clarence.core.constants import CarrierHealthStatus
from clarence.db.session import build_engine, build_session_factory, create_tables
from clarence.repositories.carriers import count_carriers, create_carrier


SEED_CARRIERS = [
    {
        "code": "reliable_insurance",
        "name": "Reliable Insurance Co.",
        "specialization": "General Liability, Professional Liability",
        "supported_coverages": [
            "general_liability",
            "professional_liability",
            "workers_comp",
            "business_auto",
            "cyber_liability",
            "employment_practices_liability",
        ],
    },
    {
        "code": "techshield_underwriters",
        "name": "TechShield Underwriters",
        "specialization": "Technology E&O, Cyber Liability",
        "supported_coverages": [
            "professional_liability",
            "cyber_liability",
            "employment_practices_liability",
            "directors_officers",
        ],
    },
    {
        "code": "premier_underwriters",
        "name": "Premier Underwriters Group",
        "specialization": "Full Commercial Lines",
        "supported_coverages": [
            "general_liability",
            "professional_liability",
            "workers_comp",
            "business_auto",
            "commercial_property",
            "cyber_liability",
            "employment_practices_liability",
            "directors_officers",
            "business_owners_policy",
        ],
    },
    {
        "code": "fastbind_insurance",
        "name": "FastBind Insurance",
        "specialization": "Quick-bind small business policies",
        "supported_coverages": [
            "general_liability",
            "professional_liability",
            "business_owners_policy",
        ],
    },
]


async def seed():
    """Insert seed carriers unless the table already has rows."""
    engine = build_engine(settings.DATABASE_URL)
    factory = build_session_factory(engine)
    try:
        await create_tables(engine)
        async with factory() as session:
            async with session.begin():
                existing = await count_carriers(session)
                if existing:
                    print(f"Found {existing} existing carriers. Skipping seed.")
                    return
                for data in SEED_CARRIERS:
                    carrier = await create_carrier(
                        session,
                        api_base_url=settings.CARRIER_API_BASE_URL,
                        api_key=settings.CARRIER_API_KEY,
                        supports_personal=True,
                        supports_commercial=True,
                        is_active=True,
                        health_status=CarrierHealthStatus.OPERATIONAL.value,
                        **data,
                    )
                    print(f"  Created carrier: {carrier.name} ({carrier.code})")
        print(f"Seeded {len(SEED_CARRIERS)} carriers.")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
