"""
Seed initial accounts for development.
Run: python -m scripts.seed_users  (from backend/)
"""

from casedesk.core.config import settings
from casedesk.core.errors import DuplicateUsernameError
from casedesk.repositories.users import UserRepository
from casedesk.storage import build_backend


SEED_USERS = [
    {
        "full_name": "Nguyen Van An",
        "username": "an.nguyen",
        "phone": "0901000001",
        "area": "North Ward",
    },
    {
        "full_name": "Tran Thi Binh",
        "username": "binh.tran",
        "phone": "0901000002",
        "area": "South Ward",
    },
]


def seed() -> None:
    """Seed the admin account and the development staff accounts."""
    users = UserRepository(build_backend(settings), settings)
    admin = users.seed_admin()
    print(f"  Admin account: {admin.username}")
    created = 0
    for data in SEED_USERS:
        try:
            user = users.create_user(**data)
        except DuplicateUsernameError:
            print(f"  Exists: {data['username']}")
            continue
        created += 1
        print(f"  Created user: {user.username} ({user.area})")
    print(f"Seeded {created} users.")


if __name__ == "__main__":
    seed()
