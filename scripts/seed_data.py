#!/usr/bin/env python3
"""
Seed data script for local development and demos.

Creates the three test-token users (``testuser-test1`` .. ``testuser-test3``),
a few colleagues, two teams and a handful of links in different states.
"""

import sys
import os
from datetime import datetime, timedelta

# Add the project root to the Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.database.database import get_db_session, init_db
from src.models.link import Link, MeetingType, OutcomeType, OutcomeStatus
from src.models.team import Team
from src.models.user import User, UserRole
from src.services.link_service import link_service, response_time_hours, team_response_rate
from src.services.membership_service import membership_service, team_role_for

USERS = [
    {"email": "test1@test.com", "name": "Test test1", "role": UserRole.PM, "designation": "Product Manager"},
    {"email": "test2@test.com", "name": "Test test2", "role": UserRole.DEV, "designation": "Backend Engineer"},
    {"email": "test3@test.com", "name": "Test test3", "role": UserRole.DESIGN, "designation": "Product Designer"},
    {"email": "priya@company.com", "name": "Priya Legal", "role": UserRole.LEGAL, "designation": "Counsel"},
    {"email": "marco@company.com", "name": "Marco Security", "role": UserRole.SECURITY, "designation": "AppSec Lead"},
    {"email": "dana@company.com", "name": "Dana Ops", "role": UserRole.BIZ_OPS, "designation": "Operations"},
]

TEAMS = [
    {
        "name": "Checkout Squad",
        "description": "Payments and checkout flow",
        "product_name": "Checkout",
        "owner": "test1@test.com",
        "members": ["test2@test.com", "test3@test.com", "priya@company.com"],
    },
    {
        "name": "Identity Platform",
        "description": "Sign-in, sessions and account security",
        "product_name": "Accounts",
        "owner": "test2@test.com",
        "members": ["marco@company.com", "dana@company.com"],
    },
]


def create_users(db):
    """Create sample users, skipping any that already exist."""
    users = {}
    for user_data in USERS:
        user = membership_service.find_or_create_user(
            db,
            email=user_data["email"],
            name=user_data["name"],
            department=user_data["role"],
            designation=user_data["designation"]
        )
        user.onboarded = True
        users[user.email] = user
        print(f"👤 User: {user.name} ({user.email}) - {user.role}")
    db.commit()
    return users


def create_teams(db, users):
    """Create sample teams with their members."""
    teams = []
    for team_data in TEAMS:
        owner = users[team_data["owner"]]
        team = db.query(Team).filter(Team.name == team_data["name"], Team.owner_id == owner.id).first()
        if team is None:
            team = membership_service.create_team(
                db,
                owner,
                name=team_data["name"],
                description=team_data["description"],
                product_name=team_data["product_name"]
            )
            print(f"📁 Created team: {team.name}")

        for email in team_data["members"]:
            user = users[email]
            if not team.is_active_member(user.id):
                membership_service.add_member(db, team, user, team_role_for(user.role))
                print(f"   ➕ {user.name} joined {team.name}")
        teams.append(team)
    return teams


def create_links(db, users, teams):
    """Create links across the lifecycle for the first team."""
    team = teams[0]
    pm = users["test1@test.com"]
    if db.query(Link).filter(Link.team_id == team.id).count():
        print("🔗 Links already seeded")
        return []

    participant_ids = team.get_member_ids()
    now = datetime.utcnow()

    specs = [
        ("Checkout API contract", "Agree on the v2 payment intent payload", MeetingType.QUICK_SYNC, "complete"),
        ("Refund flow legal review", "Review refund wording with legal", MeetingType.DECISION, "start"),
        ("Checkout redesign critique", "Walk through the new checkout mocks", MeetingType.REVIEW, "schedule"),
        ("Fraud rules brainstorm", "Ideas for the next fraud rule set", MeetingType.BRAINSTORM, None),
    ]

    links = []
    for title, purpose, meeting_type, stage in specs:
        link = link_service.create_link(db, pm, {
            "team_id": team.id,
            "title": title,
            "purpose": purpose,
            "participants": participant_ids,
            "meeting_type": meeting_type.value,
        })

        if stage == "schedule":
            link.schedule(now + timedelta(days=2))
        elif stage in ("start", "complete"):
            link.start_meeting()

        if stage == "complete":
            link.add_outcome(OutcomeType.DECISION, "Ship payload v2 behind a flag")
            link.add_outcome(
                OutcomeType.ACTION_ITEM,
                "Update the OpenAPI document",
                assigned_to=users["test2@test.com"].id,
                due_date=now + timedelta(days=3)
            )
            db.flush()
            link.set_outcome_status(link.outcomes[-1].id, OutcomeStatus.COMPLETED)
            link.complete_meeting(duration=25, notes="Payload agreed; docs to follow")
            db.flush()
            team.update_stats(
                link_count=0,
                response_time=response_time_hours(link),
                response_rate=team_response_rate(db, team.id)
            )

        db.commit()
        links.append(link)
        print(f"🔗 Created link: {link.title} ({link.status})")

    return links


def main():
    """Main seeding function."""
    print("🌱 Seeding database with sample data...")

    try:
        init_db()
        with get_db_session() as db:
            print("\n👥 Creating users...")
            users = create_users(db)

            print("\n📁 Creating teams...")
            teams = create_teams(db, users)

            print("\n🔗 Creating links...")
            links = create_links(db, users, teams)

            print(f"\n✅ Seeding completed successfully!")
            print(f"📊 Created:")
            print(f"   - {len(users)} users")
            print(f"   - {len(teams)} teams")
            print(f"   - {len(links)} links")

        print(f"\n💡 You can now:")
        print(f"   - Start the API server: ALLOW_TEST_USERS=true python main.py")
        print(f"   - Access API docs: http://localhost:5000/docs")
        print(f"   - Call the API with 'Authorization: Bearer testuser-test1'")

    except Exception as e:
        print(f"❌ Error seeding database: {str(e)}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
