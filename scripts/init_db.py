"""
Create tables for a fresh database (local runs / first deploy).
Run: python scripts/init_db.py
"""
import muselink.models  # noqa: F401  (registers tables on Base.metadata)
from muselink.db.base import Base
from muselink.db.session import engine


def main() -> None:
    Base.metadata.create_all(bind=engine)
    print(f"tables created: {', '.join(sorted(Base.metadata.tables))}")


if __name__ == "__main__":
    main()
