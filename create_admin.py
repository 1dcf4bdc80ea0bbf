#!/usr/bin/env python3
"""
Script to create an administrator (and optionally its gym)
Run this inside the Docker container: docker-compose exec backend python create_admin.py --email admin@gym.mx --password secret --gym "Iron Gym"
"""
import argparse
import logging

from gym_api.core.database import SessionLocal, init_db
from gym_api.core.security import hash_password
from gym_api.models.admin import Admin
from gym_api.models.gym import Gym


logger = logging.getLogger("create_admin")


def create_admin(email: str, password: str, name: str = None, last_name: str = None, gym_name: str = None) -> Admin:
    db = SessionLocal()
    try:
        gym = None
        if gym_name:
            gym = db.query(Gym).filter(Gym.name == gym_name).first()
            if not gym:
                print(f"Creating gym '{gym_name}'...")
                gym = Gym(name=gym_name, address={}, opening_time="06:00", closing_time="22:00")
                db.add(gym)
                db.flush()
                print(f"Gym '{gym_name}' created with ID: {gym.id}")
            else:
                print(f"Found gym '{gym_name}' with ID: {gym.id}")

        admin = db.query(Admin).filter(Admin.email == email).first()
        if admin:
            admin.hashed_password = hash_password(password)
            if gym is not None:
                admin.gym_id = gym.id
            print(f"\n✓ Administrator '{email}' updated")
        else:
            admin = Admin(
                email=email,
                name=name,
                last_name=last_name,
                hashed_password=hash_password(password),
                gym_id=gym.id if gym is not None else None,
            )
            db.add(admin)
            print(f"\n✓ Administrator '{email}' created")
        db.commit()
        db.refresh(admin)

        print(f"\n{'=' * 50}")
        print("CREDENTIALS:")
        print(f"{'=' * 50}")
        print(f"Email: {admin.email}")
        print(f"Password: {password}")
        print("Role: Administrador")
        print(f"Gym: {gym.name if gym is not None else '-'}")
        print(f"{'=' * 50}")
        return admin
    except Exception:
        db.rollback()
        logger.exception("Error creating administrator %s", email)
        raise
    finally:
        db.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create or reset a gym administrator")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--name")
    parser.add_argument("--last-name")
    parser.add_argument("--gym", help="Gym name; created when it does not exist")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    init_db()
    create_admin(args.email, args.password, args.name, args.last_name, args.gym)


if __name__ == "__main__":
    main()
