"""CLI for EchoSphere: provision organizations and staff accounts."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys


def _read_password(given: str) -> str:
    password = given
    if not password:
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match")
            sys.exit(1)
    if len(password) < 8:
        print("Password must be at least 8 characters")
        sys.exit(1)
    return password


async def cmd_create_organization(args):
    """Create an organization, optionally with a staff user."""
    from echosphere.db.engine import async_session_factory, create_all
    from echosphere.db import crud
    from echosphere.schemas import Location, OrganizationCreate
    from echosphere.services.auth import hash_password
    from echosphere.services.provisioning import create_organization

    await create_all()

    creator = None
    async with async_session_factory() as db:
        if args.staff_email:
            creator = await crud.get_user_by_email(db, args.staff_email)
            if creator is None:
                password = _read_password(args.password)
                creator = await crud.create_user(db, args.staff_email, hash_password(password))

        setup = OrganizationCreate(
            name=args.name,
            region_code=args.region_code,
            focus_area=args.focus_area,
            center=Location(x=args.lng, y=args.lat),
        )
        org = await create_organization(setup, db, creator=creator)

    print(f"Organization created: {org.name} (id={org.id}, slug={org.slug})")
    if creator is not None:
        print(f"Staff user: {creator.email} (id={creator.id})")


async def cmd_create_user(args):
    from echosphere.db.engine import async_session_factory, create_all
    from echosphere.db import crud
    from echosphere.services.auth import hash_password

    await create_all()

    async with async_session_factory() as db:
        if await crud.get_user_by_email(db, args.email):
            print(f"User {args.email} already exists")
            sys.exit(1)
        if args.organization_id and not await crud.get_organization(db, args.organization_id):
            print(f"Organization {args.organization_id} not found")
            sys.exit(1)
        password = _read_password(args.password)
        user = await crud.create_user(
            db, args.email, hash_password(password),
            display_name=args.display_name,
            role="staff" if args.organization_id else "citizen",
            organization_id=args.organization_id or None,
        )

    print(f"User created: {user.email} (id={user.id}, role={user.role})")


def main():
    parser = argparse.ArgumentParser(description="EchoSphere CLI")
    subparsers = parser.add_subparsers(dest="command")

    # create-organization
    co = subparsers.add_parser("create-organization", help="Create a new organization")
    co.add_argument("--name", required=True, help="Organization name")
    co.add_argument("--region-code", required=True, help="Region code, used for the slug")
    co.add_argument("--focus-area", default="Urban Development", help="Focus area")
    co.add_argument("--lng", type=float, default=-118.2437, help="Map center longitude")
    co.add_argument("--lat", type=float, default=34.0522, help="Map center latitude")
    co.add_argument("--staff-email", default="", help="Email of the staff account to attach")
    co.add_argument("--password", default="", help="Password for a new staff account (prompted if not given)")

    # create-user
    cu = subparsers.add_parser("create-user", help="Create a resident or staff account")
    cu.add_argument("--email", required=True, help="User email")
    cu.add_argument("--password", default="", help="Password (prompted if not given)")
    cu.add_argument("--display-name", default="", help="Display name")
    cu.add_argument("--organization-id", default="", help="Make the user staff of this organization")

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "create-organization":
        asyncio.run(cmd_create_organization(args))
    elif args.command == "create-user":
        asyncio.run(cmd_create_user(args))


if __name__ == "__main__":
    main()
