import asyncio
import sys
import os

# Add project root to sys.path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from biubiustar.core.config import settings
from biubiustar.core.security import get_password_hash
from biubiustar.db.session import create_engine, create_session_maker
from biubiustar.models.user import User


async def create_superadmin(email, username, password):
    email = email.strip().lower()
    engine = create_engine(settings.DATABASE_URL)
    session_maker = create_session_maker(engine)
    try:
        async with session_maker() as session:
            res = await session.execute(select(User).where((User.email == email) | (User.username == username)))
            existing = res.scalars().first()
            if existing:
                if existing.email != email:
                    print(f"Error: username '{username}' already belongs to {existing.email}.")
                    return
                # Existing account: promote it
                existing.role = "super_admin"
                await session.commit()
                print(f"Success: {existing.username} promoted to super_admin.")
                return

            user = User(
                email=email,
                username=username,
                password_hash=get_password_hash(password),
                display_name="Super Admin",
                is_verified=True,
                role="super_admin",
            )
            session.add(user)
            await session.commit()
            print("Success: Superadmin created!")
            print(f"Email: {email}")
            print(f"Username: {username}")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    if len(sys.argv) < 4:
        print("Usage: python scripts/create_superadmin.py <email> <username> <password>")
        sys.exit(1)

    email = sys.argv[1]
    username = sys.argv[2]
    password = sys.argv[3]
    asyncio.run(create_superadmin(email, username, password))
