"""
Seed initial data: default settings (membership open, current year, enrollment tracks).
"""
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from app.db.base import SessionLocal
from app.services.settings import seed_default_settings


def seed_settings(db):
    """Seed default settings; existing keys are left untouched."""
    print("Seeding settings...")
    added = seed_default_settings(db)
    if added:
        print(f"Settings seeded: {', '.join(added)}")
    else:
        print("Settings already present")


if __name__ == "__main__":
    db = SessionLocal()
    try:
        seed_settings(db)
        print("\nSeed data complete!")
    except Exception as e:
        db.rollback()
        print(f"Error seeding data: {e}")
        raise
    finally:
        db.close()
