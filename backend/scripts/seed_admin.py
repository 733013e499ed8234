"""
CRM Projects - Seed the first admin account
Without an admin nobody can create users through the API.

Run:   ADMIN_EMAIL=... ADMIN_PASSWORD=... python scripts/seed_admin.py
Reset password of an existing admin: same command, the document is updated.
"""

import asyncio
import os
import sys
import uuid
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from config import db, client, hash_password, now_iso
from services.permissions import get_preset_permissions


def build_admin_document(email: str, password: str, full_name: str = "Amministratore") -> dict:
    """User document for an admin, without id/created_at"""
    if not email or "@" not in email:
        raise ValueError(f"Email non valida: {email}")
    if not password or len(password) < 8:
        raise ValueError("La password deve contenere almeno 8 caratteri")
    return {
        "email": email.lower().strip(),
        "password": hash_password(password),
        "full_name": full_name,
        "role": "admin",
        "permissions": get_preset_permissions("admin"),
        "is_active": True,
    }


async def seed_admin(email: str, password: str, full_name: str = "Amministratore"):
    doc = build_admin_document(email, password, full_name)
    existing = await db.users.find_one({"email": doc["email"]})
    if existing:
        await db.users.update_one({"email": doc["email"]}, {"$set": doc})
        print(f"  Updated: {doc['email']} (admin)")
    else:
        doc["id"] = str(uuid.uuid4())
        doc["created_at"] = now_iso()
        await db.users.insert_one(doc)
        print(f"  Created: {doc['email']} (admin)")


async def main():
    email = os.environ.get("ADMIN_EMAIL", "")
    password = os.environ.get("ADMIN_PASSWORD", "")
    try:
        await seed_admin(email, password, os.environ.get("ADMIN_NAME", "Amministratore"))
    finally:
        client.close()


if __name__ == "__main__":
    asyncio.run(main())
