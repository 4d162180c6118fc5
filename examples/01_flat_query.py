"""
Example 01: Flat Queries

This example demonstrates scanning single rows and row lists into dataclasses,
including embedded composites, explicit column names and skipped fields.
"""

from row_tree import Engine, ConnectionConfig, SQLRegistry, NoRowsError, column
from dataclasses import dataclass
from datetime import datetime
import tempfile
import sqlite3
from pathlib import Path


@dataclass
class Address:
    """Embedded composite, filled from the same row"""
    city: str = ""
    zip_code: str | None = None


@dataclass
class User:
    """User entity"""
    id: int = 0
    name: str = ""
    joined: datetime | None = column("created_at", default=None)
    address: Address | None = None


def main():
    # Set up database
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    conn = sqlite3.connect(db_path)
    conn.execute("""
        CREATE TABLE users (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            created_at TIMESTAMP NOT NULL,
            city TEXT,
            zip_code TEXT
        )
    """)
    conn.execute("INSERT INTO users VALUES (1, 'Alice', '2024-01-15 09:30:00', 'Berlin', '10115')")
    conn.execute("INSERT INTO users VALUES (2, 'Bob', '2024-02-01 17:00:00', 'Paris', NULL)")
    conn.commit()
    conn.close()

    # Set up SQL registry
    sql_dir = Path(tempfile.mkdtemp())
    user_dir = sql_dir / "user"
    user_dir.mkdir()
    (user_dir / "get_by_id.sql").write_text("SELECT * FROM users WHERE id = ?")
    (user_dir / "list.sql").write_text("SELECT * FROM users ORDER BY id")

    # Configure engine
    config = ConnectionConfig(driver="sqlite", database=db_path)
    registry = SQLRegistry(str(sql_dir))
    engine = Engine.from_config(config, registry)

    print("=== Flat Queries ===\n")

    # One row into one instance
    print("1. Single row:")
    user = engine.query(User(), engine.prepare("user.get_by_id"), 1)
    print(f"   {user}\n")

    # Every row into a list
    print("2. Row list:")
    users = engine.query([], engine.prepare("user.list"), model=User)
    for u in users:
        print(f"   - {u.name} joined {u.joined:%Y-%m-%d}, lives in {u.address.city}")
    print()

    # Columns that are not selected leave their fields untouched
    print("3. Partial select:")
    names = engine.query([], "SELECT id, name FROM users ORDER BY name DESC", model=User)
    print(f"   {[(u.id, u.name, u.joined) for u in names]}\n")

    # Missing row
    print("4. Missing row:")
    try:
        engine.query(User(), engine.prepare("user.get_by_id"), 99)
    except NoRowsError as e:
        print(f"   {e}\n")

    # Clean up
    engine.close()
    Path(db_path).unlink()
    for file in user_dir.glob("*.sql"):
        file.unlink()
    user_dir.rmdir()
    sql_dir.rmdir()


if __name__ == "__main__":
    main()
