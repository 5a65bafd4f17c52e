#!/usr/bin/env python3
"""
Issue a bearer token for a RoadAmico user.

The user is created if no row exists for the email.  ``--role`` and
``--group`` update the user's role and add group memberships (groups
are created on first use, by name).

Usage:
    python create_token.py --email curator@ex.com --name "Cora" --role curator
    python create_token.py --email rider@ex.com --group "Night riders" --days 30
"""

import argparse
import sys

from roadamico_api.app.core.db import get_connection, init_db
from roadamico_api.app.core.security import create_access_token

ROLES = ("user", "curator", "admin")


def ensure_user(email: str, name: str | None, role: str | None, groups: list[str]) -> int:
    conn = get_connection()
    try:
        cur = conn.cursor()
        row = cur.execute("SELECT id FROM users WHERE email = ?", (email,)).fetchone()
        if row:
            user_id = row["id"]
        else:
            cur.execute(
                "INSERT INTO users (email, name, role) VALUES (?, ?, ?)",
                (email, name or email.split("@")[0], role or "user"),
            )
            user_id = cur.lastrowid
            print(f"[+] Created user {email} (id {user_id})")
        if role:
            cur.execute("UPDATE users SET role = ? WHERE id = ?", (role, user_id))
        if name:
            cur.execute("UPDATE users SET name = ? WHERE id = ?", (name, user_id))
        for group_name in groups:
            group = cur.execute("SELECT id FROM groups WHERE name = ?", (group_name,)).fetchone()
            if group:
                group_id = group["id"]
            else:
                cur.execute("INSERT INTO groups (name) VALUES (?)", (group_name,))
                group_id = cur.lastrowid
            cur.execute(
                "INSERT OR IGNORE INTO user_groups (user_id, group_id) VALUES (?, ?)",
                (user_id, group_id),
            )
        conn.commit()
        return user_id
    finally:
        conn.close()


def main():
    ap = argparse.ArgumentParser(description="Issue a RoadAmico API token.")
    ap.add_argument("--email", required=True, help="User email (token subject)")
    ap.add_argument("--name", help="Display name for the user")
    ap.add_argument("--role", choices=ROLES, help="Set the user's role")
    ap.add_argument("--group", action="append", default=[], help="Add the user to a group (repeatable)")
    ap.add_argument("--days", type=int, default=365, help="Token lifetime in days")
    args = ap.parse_args()

    if args.days <= 0:
        print("[!] --days must be positive.", file=sys.stderr)
        sys.exit(1)

    init_db()
    ensure_user(args.email, args.name, args.role, args.group)
    print(create_access_token({"sub": args.email}, expires_delta=args.days * 24 * 60 * 60))


if __name__ == "__main__":
    main()
