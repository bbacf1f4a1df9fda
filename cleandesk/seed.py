"""
Seed lookup tables and an organization with its owner.

Run with: python -m cleandesk.seed --org-name "Zen Zone Cleaning" --owner-email owner@example.com
"""

import argparse
from typing import Optional

from sqlalchemy.orm import Session

from . import models_invoice, models_job  # noqa: F401
from .database import Base, SessionLocal, engine
from .models import HearAbout, Industry, Membership, Organization, ServiceType, User
from .shared.validators import make_org_slug, validate_email

INDUSTRIES = [
    ("home-cleaning", "Home Cleaning"),
    ("office", "Office Cleaning"),
    ("airbnb", "Airbnb Cleaning"),
]

SERVICE_TYPES = [
    ("home-cleaning", "standard", "Standard Cleaning"),
    ("home-cleaning", "deep", "Deep Cleaning"),
    ("home-cleaning", "moving-standard", "Moving Standard Cleaning"),
    ("home-cleaning", "moving-deep", "Moving Deep Cleaning"),
    ("home-cleaning", "post-renovation", "Post-Renovation Cleaning"),
    ("home-cleaning", "recurring", "Recurring Cleaning"),
    ("office", "office", "Office Cleaning"),
    ("airbnb", "airbnb", "Airbnb Cleaning"),
]

HEAR_ABOUT_OPTIONS = [
    ("gbp", "Google Maps or GBP"),
    ("google-guaranteed", "Google Guaranteed"),
    ("brochure", "Brochure"),
    ("referral", "Referral"),
    ("other", "Other"),
]


def seed_lookup_tables(db: Session) -> dict[str, int]:
    """Insert missing industries, service types and hear-about options. Idempotent."""
    created = {"industries": 0, "service_types": 0, "hear_about": 0}

    industries = {i.slug: i for i in db.query(Industry).all()}
    for slug, label in INDUSTRIES:
        if slug not in industries:
            industries[slug] = Industry(slug=slug, label=label, active=True)
            db.add(industries[slug])
            created["industries"] += 1
    db.flush()

    existing_types = {s.slug for s in db.query(ServiceType.slug).all()}
    for industry_slug, slug, label in SERVICE_TYPES:
        if slug not in existing_types:
            db.add(
                ServiceType(
                    industry_id=industries[industry_slug].id, slug=slug, label=label, active=True
                )
            )
            created["service_types"] += 1

    existing_options = {h.slug for h in db.query(HearAbout.slug).all()}
    for slug, label in HEAR_ABOUT_OPTIONS:
        if slug not in existing_options:
            db.add(HearAbout(slug=slug, label=label))
            created["hear_about"] += 1

    db.flush()
    return created


def seed_organization(
    db: Session,
    name: str,
    owner_email: str,
    slug: Optional[str] = None,
    owner_name: Optional[str] = None,
) -> Organization:
    """Organization with an OWNER membership. Reuses existing rows with the same slug/email."""
    slug = slug or make_org_slug(name)
    org = db.query(Organization).filter(Organization.slug == slug).first()
    if not org:
        org = Organization(name=name, slug=slug, industry="home-cleaning")
        db.add(org)
        db.flush()
        print(f"✅ Created organization '{slug}'")
    else:
        print(f"ℹ️  Organization '{slug}' already exists")

    owner = db.query(User).filter(User.email == owner_email).first()
    if not owner:
        # Linked to the Firebase account on first sign-in with this email
        owner = User(firebase_uid=f"invited:{owner_email}", email=owner_email, full_name=owner_name)
        db.add(owner)
        db.flush()
        print(f"✅ Created owner account {owner_email}")

    membership = (
        db.query(Membership)
        .filter(Membership.user_id == owner.id, Membership.org_id == org.id)
        .first()
    )
    if not membership:
        db.add(Membership(user_id=owner.id, org_id=org.id, role="OWNER"))
        db.flush()
        print(f"✅ {owner_email} is now OWNER of '{slug}'")

    return org


def main(argv: Optional[list[str]] = None) -> None:
    ap = argparse.ArgumentParser(description="Seed lookup tables and an organization")
    ap.add_argument("--org-name", default=None, help="Organization to create")
    ap.add_argument("--org-slug", default=None, help="Slug (defaults to one derived from the name)")
    ap.add_argument("--owner-email", default=None, help="Owner account email")
    ap.add_argument("--owner-name", default=None, help="Owner display name")
    args = ap.parse_args(argv)

    if args.org_name and not args.owner_email:
        ap.error("--owner-email is required with --org-name")

    Base.metadata.create_all(bind=engine, checkfirst=True)
    db = SessionLocal()
    try:
        created = seed_lookup_tables(db)
        print(f"🌱 Lookup tables seeded: {created}")

        if args.org_name:
            seed_organization(
                db,
                name=args.org_name,
                owner_email=validate_email(args.owner_email),
                slug=args.org_slug,
                owner_name=args.owner_name,
            )

        db.commit()
        print("🎉 Seeding complete")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
