"""
Persona Recruit Database Seeder

Creates one company with its staff, a registered candidate and an active
job posting so the API can be exercised end to end:
- super admin, company admin, recruiter and interviewer accounts
- candidate Alex Rivera with a basic profile
- "Senior Backend Engineer" posting in the Engineering department
"""

import sys
sys.path.insert(0, ".")

from app.db.session import SessionLocal, engine
from app.db.base import Base
from app.models import CandidateProfile, Company, Job, User
from app.core.security import Role, get_password_hash


def seed_database():
    """Seed the database with test data."""

    # Create all tables
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()

    try:
        # Check if already seeded
        existing_admin = db.query(User).filter(User.email == "admin@personarecruit.dev").first()
        if existing_admin:
            print("Database already seeded. Skipping...")
            return

        print("Seeding database...")

        # 1. Platform super admin (no company)
        db.add(User(
            email="admin@personarecruit.dev",
            hashed_password=get_password_hash("admin12345"),
            full_name="Platform Admin",
            role=Role.SUPER_ADMIN.value,
        ))

        # 2. Company and its staff
        company = Company(name="Northwind Labs", website="https://northwind.example.com", plan="professional")
        db.add(company)
        db.flush()

        staff = [
            ("owner@northwind.example.com", "Morgan Lee", Role.COMPANY_ADMIN),
            ("recruiter@northwind.example.com", "Sam Patel", Role.RECRUITER),
            ("interviewer@northwind.example.com", "Jordan Kim", Role.INTERVIEWER),
        ]
        recruiter = None
        for email, name, role in staff:
            user = User(
                email=email,
                hashed_password=get_password_hash("staff12345"),
                full_name=name,
                role=role.value,
                company_id=company.id,
            )
            db.add(user)
            if role == Role.RECRUITER:
                recruiter = user
        db.flush()

        # 3. Candidate with a basic (not yet enriched) profile
        candidate_user = User(
            email="alex.rivera@example.com",
            hashed_password=get_password_hash("candidate123"),
            full_name="Alex Rivera",
            role=Role.CANDIDATE.value,
        )
        db.add(candidate_user)
        db.flush()

        db.add(CandidateProfile(
            id=candidate_user.id,
            first_name="Alex",
            last_name="Rivera",
            email=candidate_user.email,
            location="Austin, TX",
            skills=["Python", "FastAPI", "PostgreSQL"],
        ))

        # 4. Active job posting
        db.add(Job(
            title="Senior Backend Engineer",
            department="Engineering",
            location="Remote",
            employment_type="full_time",
            description="Own the services behind our hiring pipeline.",
            requirements=["5+ years of backend experience", "Production Python"],
            skills=["Python", "FastAPI", "SQL"],
            salary_range="$150k - $180k",
            status="active",
            company_id=company.id,
            recruiter_id=recruiter.id,
        ))

        # Commit all changes
        db.commit()

        print("✅ Database seeded successfully!")
        print("\n📋 Created Users:")
        print("   - admin@personarecruit.dev (password: admin12345) [SUPER ADMIN]")
        print("   - owner@northwind.example.com (password: staff12345) [COMPANY ADMIN]")
        print("   - recruiter@northwind.example.com (password: staff12345) [RECRUITER]")
        print("   - interviewer@northwind.example.com (password: staff12345) [INTERVIEWER]")
        print("   - alex.rivera@example.com (password: candidate123) [CANDIDATE]")

    except Exception as e:
        db.rollback()
        print(f"❌ Error seeding database: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
