# create_tables.py
from dayos.database import Base, engine
import dayos.models  # noqa: F401  registers every table on Base.metadata

def create_tables():
    """Create all tables that do not exist yet"""
    try:
        Base.metadata.create_all(bind=engine)
        print("✅ All tables created successfully!")
        for name in sorted(Base.metadata.tables):
            print(f"   - {name}")
    except Exception as e:
        print(f"❌ Error creating tables: {e}")
        raise

if __name__ == "__main__":
    create_tables()
