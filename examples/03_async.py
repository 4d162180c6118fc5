"""
Example 03: Async Support

This example demonstrates asynchronous query execution using AsyncEngine,
with a connection config read from the environment.
"""

import asyncio
import os
from row_tree import AsyncEngine, ConnectionConfig, SQLRegistry
from dataclasses import dataclass
import tempfile
import sqlite3
from pathlib import Path


@dataclass
class Comment:
    id: int
    post_id: int
    body: str


@dataclass
class Post:
    id: int
    title: str
    comments: list[Comment] | None = None


async def main():
    # Set up database
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    conn = sqlite3.connect(db_path)
    conn.execute("CREATE TABLE posts (id INTEGER PRIMARY KEY, title TEXT NOT NULL)")
    conn.execute("""
        CREATE TABLE comments (
            id INTEGER PRIMARY KEY,
            post_id INTEGER NOT NULL REFERENCES posts(id),
            body TEXT NOT NULL
        )
    """)
    conn.execute("INSERT INTO posts VALUES (1, 'Hello'), (2, 'Quiet post')")
    conn.execute("INSERT INTO comments VALUES (1, 1, 'First!'), (2, 1, 'Nice')")
    conn.commit()
    conn.close()

    # Set up SQL registry
    sql_dir = Path(tempfile.mkdtemp())
    post_dir = sql_dir / "post"
    post_dir.mkdir()
    (post_dir / "list.sql").write_text("SELECT id, title FROM posts ORDER BY id")
    (post_dir / "get_by_id.sql").write_text("SELECT id, title FROM posts WHERE id = :id")
    (post_dir / "with_comments.sql").write_text("""
        SELECT p.id, p.title, c.id, c.post_id, c.body
        FROM posts p LEFT JOIN comments c ON c.post_id = p.id
        ORDER BY p.id, c.id
    """)
    (post_dir / "create.sql").write_text("INSERT INTO posts (title) VALUES (:title)")

    # Configure async engine from ROW_TREE_DB_* variables
    os.environ.setdefault("ROW_TREE_DB_DRIVER", "sqlite")
    os.environ.setdefault("ROW_TREE_DB_NAME", db_path)
    config = ConnectionConfig.from_env()
    registry = SQLRegistry(str(sql_dir))
    engine = AsyncEngine.from_config(config, registry)

    print("=== Async Query Execution ===\n")

    print("1. Async query into a list:")
    posts = await engine.query([], engine.prepare("post.list"), model=Post)
    for post in posts:
        print(f"   - {post.title}")
    print()

    print("2. Async join tree:")
    tree = await engine.query_join([], engine.prepare("post.with_comments"), model=Post)
    for post in tree:
        print(f"   {post.title}: {[c.body for c in post.comments or []]}")
    print()

    print("3. Async execute:")
    created = await engine.execute(engine.prepare("post.create"), {"title": "Draft"})
    print(f"   Inserted {created} row\n")

    print("4. Concurrent queries:")
    first, second = await asyncio.gather(
        engine.query(Post(id=0, title=""), engine.prepare("post.get_by_id"), {"id": 1}),
        engine.query(Post(id=0, title=""), engine.prepare("post.get_by_id"), {"id": 3}),
    )
    print(f"   Post 1: {first.title}")
    print(f"   Post 3: {second.title}\n")

    # Clean up
    await engine.close()
    Path(db_path).unlink()
    for file in post_dir.glob("*.sql"):
        file.unlink()
    post_dir.rmdir()
    sql_dir.rmdir()


if __name__ == "__main__":
    asyncio.run(main())
