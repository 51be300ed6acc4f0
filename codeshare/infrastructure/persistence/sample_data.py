"""Demo accounts and snippets loaded into a fresh installation."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict, List

from ...domain.clock import to_iso
from ...domain.models import Snippet, User
from ...services.password_hasher import PasswordHasher
from .database import DatabaseManager

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "demo123"

SAMPLE_USERS: List[Dict[str, Any]] = [
    {"id": "user1", "name": "Alex Johnson", "email": "alex@example.com", "age": timedelta(days=7)},
    {"id": "user2", "name": "Sarah Chen", "email": "sarah@example.com", "age": timedelta(days=5)},
    {"id": "user3", "name": "Mike Rodriguez", "email": "mike@example.com", "age": timedelta(days=3)},
]

SAMPLE_SNIPPETS: List[Dict[str, Any]] = [
    {
        "id": "sample-react-usestate",
        "title": "React useState Hook Example",
        "description": "A simple example of how to use the useState hook in React with proper typing.",
        "code": (
            "import React, { useState } from 'react';\n\n"
            "const Counter: React.FC<{ initialValue?: number }> = ({ initialValue = 0 }) => {\n"
            "  const [count, setCount] = useState<number>(initialValue);\n"
            "  return <button onClick={() => setCount(prev => prev + 1)}>Count: {count}</button>;\n"
            "};\n\n"
            "export default Counter;"
        ),
        "language": "TypeScript",
        "tags": ["react", "hooks", "typescript", "counter"],
        "likes": 15,
        "user_id": "user1",
        "age": timedelta(days=2),
    },
    {
        "id": "sample-python-pandas",
        "title": "Python Data Processing",
        "description": "Efficient data processing with pandas and numpy for large datasets.",
        "code": (
            "import pandas as pd\n\n\n"
            "def process_data(file_path: str) -> pd.DataFrame:\n"
            "    df = pd.read_csv(file_path).dropna().drop_duplicates()\n"
            "    if {'price', 'quantity'} <= set(df.columns):\n"
            "        df['total'] = df['price'] * df['quantity']\n"
            "    return df\n"
        ),
        "language": "Python",
        "tags": ["pandas", "numpy", "data-science", "csv"],
        "likes": 23,
        "user_id": "user2",
        "age": timedelta(days=4),
    },
    {
        "id": "sample-css-grid",
        "title": "CSS Grid Layout Pattern",
        "description": "A responsive grid layout using CSS Grid with auto-fit and minmax.",
        "code": (
            ".grid-container {\n"
            "  display: grid;\n"
            "  grid-template-columns: repeat(auto-fit, minmax(300px, 1fr));\n"
            "  gap: 2rem;\n"
            "}"
        ),
        "language": "CSS",
        "tags": ["css-grid", "responsive", "layout"],
        "likes": 18,
        "user_id": "user1",
        "age": timedelta(days=1),
    },
    {
        "id": "sample-js-debounce",
        "title": "JavaScript Debounce Function",
        "description": "Delay a function call until input has settled, useful for search boxes.",
        "code": (
            "function debounce(fn, wait = 300) {\n"
            "  let timer;\n"
            "  return (...args) => {\n"
            "    clearTimeout(timer);\n"
            "    timer = setTimeout(() => fn(...args), wait);\n"
            "  };\n"
            "}"
        ),
        "language": "JavaScript",
        "tags": ["utility", "performance", "debounce"],
        "likes": 31,
        "user_id": "user3",
        "age": timedelta(hours=6),
    },
    {
        "id": "sample-go-middleware",
        "title": "Go HTTP Server with Middleware",
        "description": "Minimal net/http server with a logging middleware.",
        "code": (
            "func logging(next http.Handler) http.Handler {\n"
            "\treturn http.HandlerFunc(func(w http.ResponseWriter, r *http.Request) {\n"
            "\t\tlog.Printf(\"%s %s\", r.Method, r.URL.Path)\n"
            "\t\tnext.ServeHTTP(w, r)\n"
            "\t})\n"
            "}"
        ),
        "language": "Go",
        "tags": ["http-server", "middleware", "logging"],
        "likes": 12,
        "user_id": "user2",
        "age": timedelta(hours=3),
    },
    {
        "id": "sample-sql-index",
        "title": "SQL Query Optimization",
        "description": "Covering index for a frequent lookup and join.",
        "code": (
            "CREATE INDEX idx_orders_customer_created\n"
            "    ON orders (customer_id, created_at DESC);\n\n"
            "SELECT o.id, o.total FROM orders o\n"
            "WHERE o.customer_id = $1\n"
            "ORDER BY o.created_at DESC LIMIT 20;"
        ),
        "language": "SQL",
        "tags": ["optimization", "indexing", "performance"],
        "likes": 27,
        "user_id": "user3",
        "age": timedelta(hours=12),
    },
    {
        "id": "sample-docker-multistage",
        "title": "Docker Multi-Stage Build",
        "description": "Build with the full toolchain, ship only the runtime.",
        "code": (
            "FROM node:20 AS build\n"
            "WORKDIR /app\n"
            "COPY . .\n"
            "RUN npm ci && npm run build\n\n"
            "FROM node:20-slim\n"
            "COPY --from=build /app/dist /app\n"
            "CMD [\"node\", \"/app/index.js\"]"
        ),
        "language": "Dockerfile",
        "tags": ["docker", "deployment", "production"],
        "likes": 29,
        "user_id": "user3",
        "age": timedelta(minutes=30),
    },
]


def create_sample_data(database: DatabaseManager, hasher: PasswordHasher) -> bool:
    """Load the demo data unless the database already holds users or snippets."""
    if not database.is_empty():
        logger.info("Existing data found, skipping sample data")
        return False

    now = database.clock()
    password_hash = hasher.hash(DEMO_PASSWORD)
    for item in SAMPLE_USERS:
        stamp = to_iso(now - item["age"])
        database.save_user(
            User(
                id=item["id"],
                name=item["name"],
                email=item["email"],
                password_hash=password_hash,
                created_at=stamp,
                updated_at=stamp,
            )
        )
    for item in SAMPLE_SNIPPETS:
        stamp = to_iso(now - item["age"])
        database.save_snippet(
            Snippet(
                id=item["id"],
                title=item["title"],
                description=item["description"],
                code=item["code"],
                language=item["language"],
                tags=list(item["tags"]),
                is_public=True,
                likes=item["likes"],
                user_id=item["user_id"],
                created_at=stamp,
                updated_at=stamp,
            )
        )
    logger.info("Loaded %d sample users and %d sample snippets", len(SAMPLE_USERS), len(SAMPLE_SNIPPETS))
    return True
