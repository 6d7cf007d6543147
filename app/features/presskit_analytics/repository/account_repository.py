"""
Account directory lookups against Supabase auth.users.
"""

from app.db.helpers import fetch_one, with_db_retry


class AccountDirectoryRepository:
    """Resolves an owning account reference to its contact address."""

    @classmethod
    @with_db_retry(max_retries=2, base_delay=0.1)
    async def fetch_contact_email(cls, user_id: str) -> str | None:
        query = """
            SELECT email
            FROM auth.users
            WHERE id = %s
        """

        row = await fetch_one(query, (user_id,))
        if not row:
            return None
        return row.get("email") or None
