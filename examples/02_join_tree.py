"""
Example 02: Join Trees

This example demonstrates reconstructing a nested object tree from a single
flattened LEFT JOIN. Each level lists its identity field first and its
children as the last field.
"""

from row_tree import Engine, ConnectionConfig, SQLRegistry
from dataclasses import dataclass, field
import tempfile
import sqlite3
from pathlib import Path


@dataclass
class OrderLine:
    """Order line, the deepest level"""
    id: int
    order_id: int
    product: str
    quantity: int


@dataclass
class Order:
    """Order entity with its lines"""
    id: int
    user_id: int
    total: float
    lines: list[OrderLine] = field(default_factory=list)


@dataclass
class UserWithOrders:
    """User tree root; orders stays None when the user has none"""
    id: int
    name: str
    orders: list[Order] | None = None


def main():
    # Set up database with users, orders and order lines
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    conn = sqlite3.connect(db_path)
    conn.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL)")
    conn.execute("""
        CREATE TABLE orders (
            id INTEGER PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id),
            total REAL NOT NULL
        )
    """)
    conn.execute("""
        CREATE TABLE order_lines (
            id INTEGER PRIMARY KEY,
            order_id INTEGER NOT NULL REFERENCES orders(id),
            product TEXT NOT NULL,
            quantity INTEGER NOT NULL
        )
    """)
    conn.execute("INSERT INTO users VALUES (1, 'Alice'), (2, 'Bob'), (3, 'Carol')")
    conn.execute("INSERT INTO orders VALUES (10, 1, 100.50), (11, 1, 20.00), (12, 2, 7.25)")
    conn.execute("""
        INSERT INTO order_lines VALUES
            (100, 10, 'keyboard', 1),
            (101, 10, 'mouse', 2),
            (102, 11, 'cable', 4),
            (103, 12, 'sticker', 5)
    """)
    conn.commit()
    conn.close()

    # Set up SQL registry
    sql_dir = Path(tempfile.mkdtemp())
    user_dir = sql_dir / "user"
    user_dir.mkdir()

    # Columns follow the tree: user, then order, then order line
    (user_dir / "with_orders.sql").write_text("""
        SELECT u.id, u.name, o.id, o.user_id, o.total,
               l.id, l.order_id, l.product, l.quantity
        FROM users u
        LEFT JOIN orders o ON o.user_id = u.id
        LEFT JOIN order_lines l ON l.order_id = o.id
        ORDER BY u.id, o.id, l.id
    """)

    # Configure engine
    config = ConnectionConfig(driver="sqlite", database=db_path)
    registry = SQLRegistry(str(sql_dir))
    engine = Engine.from_config(config, registry)

    print("=== Join Trees ===\n")

    users = engine.query_join(
        [], engine.prepare("user.with_orders"), model=UserWithOrders, strict=True
    )

    print(f"Reconstructed {len(users)} users:\n")
    for user in users:
        print(f"User: {user.name}")
        for order in user.orders or []:
            print(f"  Order #{order.id}: ${order.total:.2f}")
            for line in order.lines:
                print(f"    - {line.quantity} x {line.product}")
        if user.orders is None:
            print("  (no orders)")
        print()

    # Clean up
    engine.close()
    Path(db_path).unlink()
    for file in user_dir.glob("*.sql"):
        file.unlink()
    user_dir.rmdir()
    sql_dir.rmdir()


if __name__ == "__main__":
    main()
