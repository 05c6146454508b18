"""
Create the ScrapX schema and seed reference data (material types and NGOs)
Safe to run repeatedly: existing tables and rows are left untouched
"""

import sys
from scrapx.database import engine, SessionLocal
from scrapx.models.base import Base
from scrapx.models.material_type import MaterialType
from scrapx.models.ngo import NGO

# Names match the detector's class labels after capitalisation
MATERIAL_TYPES = [
    {"name": "Paper", "category": "paper", "description": "Newspapers, magazines, office paper", "base_price": 12.0},
    {"name": "Cardboard", "category": "paper", "description": "Boxes and packaging board", "base_price": 8.0},
    {"name": "Plastic", "category": "plastic", "description": "Bottles, containers, packaging", "base_price": 15.0},
    {"name": "Metal", "category": "metal", "description": "Cans, aluminium, scrap metal", "base_price": 35.0},
    {"name": "Glass", "category": "glass", "description": "Bottles and jars", "base_price": 2.0},
    {"name": "Electronics", "category": "electronic", "description": "Old devices, cables, batteries", "base_price": 40.0},
    {"name": "Textiles", "category": "clothes", "description": "Old clothing, fabrics, linens", "base_price": 5.0},
    {"name": "Organic", "category": "biological", "description": "Compostable materials, food waste", "base_price": 1.0},
]

NGOS = [
    {
        "name": "Green Earth Foundation",
        "description": "Recycling and environmental conservation organization focused on promoting sustainable practices.",
        "address": "123 Green Street, Chennai, Tamil Nadu",
        "phone": "+91 98765 43210",
        "email": "contact@greenearthfoundation.org",
        "website": "https://www.greenearthfoundation.org",
    },
    {
        "name": "Books for All",
        "description": "Non-profit organization that collects and distributes books to underprivileged children.",
        "address": "45 Library Road, Mumbai, Maharashtra",
        "phone": "+91 87654 32109",
        "email": "info@booksforall.org",
        "website": "https://www.booksforall.org",
    },
    {
        "name": "Upcycle India",
        "description": "Organization that transforms waste materials into useful products while providing employment to marginalized communities.",
        "address": "78 Craft Avenue, Delhi, Delhi",
        "phone": "+91 76543 21098",
        "email": "hello@upcycleindia.org",
        "website": "https://www.upcycleindia.org",
    },
]


def seed_reference_data(db) -> dict:
    """Insert missing material types and NGOs, matched by name"""
    added = {"material_types": 0, "ngos": 0}

    existing_materials = {name for (name,) in db.query(MaterialType.name).all()}
    for material in MATERIAL_TYPES:
        if material["name"] not in existing_materials:
            db.add(MaterialType(**material, created_by="migration"))
            added["material_types"] += 1

    existing_ngos = {name for (name,) in db.query(NGO.name).all()}
    for ngo in NGOS:
        if ngo["name"] not in existing_ngos:
            db.add(NGO(**ngo, created_by="migration"))
            added["ngos"] += 1

    db.commit()
    return added


def run_migration():
    """Create all tables (including the one-active-negotiation index) and seed reference data"""

    print("Running migration: creating ScrapX tables and seeding reference data...")

    try:
        Base.metadata.create_all(bind=engine)
        print("✓ Tables and indexes are in place")

        db = SessionLocal()
        try:
            added = seed_reference_data(db)
        finally:
            db.close()

        print(f"✓ Added {added['material_types']} material type(s)")
        print(f"✓ Added {added['ngos']} NGO(s)")
        print("\nMigration completed successfully!")

    except Exception as e:
        print(f"✗ Error running migration: {e}")
        sys.exit(1)


if __name__ == "__main__":
    run_migration()
