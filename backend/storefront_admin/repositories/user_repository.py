"""
User Repository - Data Access Layer for dashboard users
"""
from typing import Optional, Tuple

from storefront_admin.domain.user import User, ADMIN_ROLE
from storefront_admin.core.database import (
    ConnectionFactory,
    get_db_connection_dict_with_retry,
    new_id,
    utcnow,
)


class UserRepository:

    def __init__(self, connection_factory: ConnectionFactory = get_db_connection_dict_with_retry):
        self._connect = connection_factory

    @staticmethod
    def _map_row_to_user(row: dict) -> User:
        return User(
            id=row['id'],
            name=row.get('name') or '',
            email=row['email'],
            role=row['role'],
            created_at=row['created_at'],
        )

    def find_by_email(self, email: str) -> Optional[Tuple[User, str]]:
        """
        Find user by email

        Returns:
            Tuple of (user, password hash) or None if not found
        """
        conn = self._connect()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id, name, email, password_hash, role, created_at
                FROM users
                WHERE email = %s
            """, (email,))

            row = cursor.fetchone()
            if not row:
                return None

            return self._map_row_to_user(row), row['password_hash']

        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, user_id: str) -> Optional[User]:
        conn = self._connect()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id, name, email, role, created_at
                FROM users
                WHERE id = %s
            """, (user_id,))

            row = cursor.fetchone()
            return self._map_row_to_user(row) if row else None

        finally:
            cursor.close()
            conn.close()

    def insert(self, name: str, email: str, password_hash: str) -> User:
        conn = self._connect()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO users (id, name, email, password_hash, role, created_at)
                VALUES (%s, %s, %s, %s, %s, %s)
                RETURNING id, name, email, role, created_at
            """, (new_id(), name, email, password_hash, ADMIN_ROLE, utcnow()))

            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_user(row)

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()
