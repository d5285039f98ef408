"""
Create all tables from the SQLAlchemy models

Usage:
  python scripts/create_tables.py

Intended for local SQLite setups; use `alembic upgrade head` for PostgreSQL.
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from sqlalchemy import inspect

from certicraft import models  # noqa: F401
from certicraft.database import Base, engine


def main():
    Base.metadata.create_all(engine)
    tables = inspect(engine).get_table_names()
    print(f"Tables: {', '.join(sorted(tables))}")


if __name__ == '__main__':
    main()
