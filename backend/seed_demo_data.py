"""
Seed demo data: an admin, a few members and a guest, themes, works and votes.

Run init_db.py (or reset_database.py) first. All accounts log in by email.
"""

import asyncio
import random
import sys
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

# Add repository root to Python path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir.parent))

# Load environment variables from .env file
load_dotenv(backend_dir / ".env")

from backend.app.core.config import settings
from backend.app.core.utils import utcnow
from backend.app.db.base import AsyncSessionLocal
from backend.app.models.theme import Theme, ThemeCategory, ThemeStatus
from backend.app.models.user import Cluster, User, UserType
from backend.app.models.work import Work, WorkCategory
from backend.app.services.portfolios import ensure_portfolio
from backend.app.services.submission import submit_work
from backend.app.services.theme_lifecycle import advance
from backend.app.services.voting import cast_vote

DOMAIN = settings.member_email_domain or "example.com"

MEMBERS = [
    ("Andrea Santos", Cluster.PHOTOGRAPHY, "Batch 2021", "Photo Editor"),
    ("Miguel Reyes", Cluster.GRAPHICS, "Batch 2022", "Layout Artist"),
    ("Bea Cruz", Cluster.VIDEOGRAPHY, "Batch 2023", "Video Producer"),
    ("Paolo Garcia", Cluster.PHOTOGRAPHY, "Batch 2024", "Member"),
]

SAMPLE_WORKS = {
    WorkCategory.PHOTOS: [
        ("Golden Hour at the Lagoon", "Sunset over the campus lagoon."),
        ("Jeepney Rush", "Long exposure of the evening commute."),
        ("Oblation in Rain", "Monsoon afternoon portrait."),
    ],
    WorkCategory.GRAPHICS: [
        ("Fair Poster 2024", "Poster series for the university fair."),
        ("Type Study", "Experiments with Baybayin letterforms."),
    ],
    WorkCategory.VIDEOS: [
        ("Orientation Reel", "Highlights from freshman orientation week."),
    ],
}

CLUSTER_CATEGORY = {
    Cluster.PHOTOGRAPHY: WorkCategory.PHOTOS,
    Cluster.GRAPHICS: WorkCategory.GRAPHICS,
    Cluster.VIDEOGRAPHY: WorkCategory.VIDEOS,
}


async def seed_demo_data():
    print("Seeding demo data...")
    random.seed(42)
    now = utcnow()

    async with AsyncSessionLocal() as db:
        admin = User(
            name="LenteXhibit Admin",
            email=f"admin@{DOMAIN}",
            user_type=UserType.ADMIN.value,
            is_approved=True,
            is_active=True,
            created_at=now,
        )
        guest = User(
            name="Visiting Guest",
            email="guest@example.com",
            user_type=UserType.GUEST.value,
            is_approved=True,
            is_active=True,
            created_at=now,
        )
        db.add_all([admin, guest])

        members = []
        for name, cluster, batch, position in MEMBERS:
            handle = name.split()[0].lower()
            member = User(
                name=name,
                email=f"{handle}@{DOMAIN}",
                user_type=UserType.MEMBER.value,
                batch_name=batch,
                cluster=cluster.value,
                position=position,
                is_approved=True,
                is_active=True,
                created_at=now,
            )
            db.add(member)
            members.append(member)
        await db.flush()
        print(f"Created admin, guest and {len(members)} members")

        # One theme running now, one starting next month
        active = Theme(
            title="Campus Light",
            description="How light shapes the places we pass every day.",
            category=ThemeCategory.PHOTOS.value,
            start_date=now - timedelta(days=7),
            end_date=now + timedelta(days=14),
            status=ThemeStatus.UPCOMING.value,
            created_by=admin.id,
            created_at=now,
        )
        upcoming = Theme(
            title="Motion",
            description="Anything that moves.",
            category=ThemeCategory.ALL.value,
            start_date=now + timedelta(days=30),
            end_date=now + timedelta(days=60),
            status=ThemeStatus.UPCOMING.value,
            created_by=admin.id,
            created_at=now,
        )
        db.add_all([active, upcoming])
        await db.flush()
        for theme in (active, upcoming):
            await advance(db, theme, now)

        works: list[Work] = []
        for offset, member in enumerate(members):
            category = CLUSTER_CATEGORY[Cluster(member.cluster)]
            portfolio = await ensure_portfolio(db, member, now)
            for index, (title, description) in enumerate(SAMPLE_WORKS[category]):
                created = now - timedelta(days=3, minutes=10 * offset + index)
                work = Work(
                    title=title if offset < 2 else f"{title} ({member.name.split()[0]})",
                    description=description,
                    category=category.value,
                    file_url=f"https://picsum.photos/seed/{member.id[:8]}{index}/800/600",
                    tags=[category.value.lower(), "demo"],
                    user_id=member.id,
                    portfolio_id=portfolio.id,
                    created_at=created,
                    updated_at=created,
                )
                db.add(work)
                works.append(work)
        await db.flush()
        print(f"Created {len(works)} works")

        entries = [w for w in works if active.accepts(w.category)]
        for work in entries:
            await submit_work(db, active.id, work.id, work.user_id, now)
        print(f"Submitted {len(entries)} works to '{active.title}'")

        voters = [guest, *members]
        votes = 0
        for work in works:
            for voter in random.sample(voters, k=random.randint(0, len(voters))):
                await cast_vote(db, voter.id, work.id, None, now)
                votes += 1
        for work in entries:
            for voter in random.sample(voters, k=random.randint(0, 3)):
                await cast_vote(db, voter.id, work.id, active.id, now)
                votes += 1
        print(f"Cast {votes} votes")

        if works:
            works[0].featured = True

        await db.commit()

    print("Demo data seeded successfully!")
    print(f"\nLog in as admin@{DOMAIN}, guest@example.com or any member, e.g. andrea@{DOMAIN}")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
