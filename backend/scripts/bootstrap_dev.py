"""
Dev bootstrap script — grant admin rights to an existing account.

Usage:
    python -m scripts.bootstrap_dev admin@example.com

This will:
  1. Look up the auth account for the email
  2. Create admins/{uid} (the only thing the API checks)
  3. Print the uid

The account itself must already exist (create it in the Firebase console).
"""

import asyncio
import sys

# Ensure the project root is on the path
sys.path.insert(0, ".")

from portal_admin.core.firebase import SERVER_TIMESTAMP, get_auth_directory, get_store
from portal_admin.auth.dependencies import ADMINS_COLLECTION


async def main(email: str) -> None:
    auth_directory = get_auth_directory()
    store = get_store()

    # ── Resolve account ─────────────────────────────────────
    uid = await asyncio.to_thread(auth_directory.get_uid_by_email, email)

    # ── Grant admin ─────────────────────────────────────────
    await asyncio.to_thread(
        store.set_document,
        f"{ADMINS_COLLECTION}/{uid}",
        {"email": email, "createdAt": SERVER_TIMESTAMP},
        True,
    )

    # ── Print results ───────────────────────────────────────
    print()
    print("=" * 60)
    print("  Dev Bootstrap Complete")
    print("=" * 60)
    print()
    print(f"  Admin:  {email}")
    print(f"  UID:    {uid}")
    print()
    print("  Sign in with this account to use the API.")
    print("=" * 60)
    print()


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python -m scripts.bootstrap_dev <email>")
        sys.exit(1)
    asyncio.run(main(sys.argv[1]))
