"""MongoDB implementation of SessionStore."""

import os
import uuid
from datetime import datetime, timedelta, timezone
from logging import getLogger
from pymongo.database import Database
from pymongo.errors import PyMongoError
from adapter.mongodb import SESSIONS_COLLECTION_NAME
from domain.model.errors import PersistenceError

logger = getLogger(__name__)

SESSION_EXPIRATION_DAYS = int(os.getenv('SESSION_EXPIRATION_DAYS', '7'))


class MongoSessionStore:
    def __init__(self, db: Database, ttl: timedelta | None = None):
        self.collection = db[SESSIONS_COLLECTION_NAME]
        self.ttl = ttl or timedelta(days=SESSION_EXPIRATION_DAYS)

    def ensure_indexes(self) -> bool:
        """Create indexes for sessions collection (TTL on expires_at)."""
        from adapter.mongodb.indexes import create_index_safe

        try:
            create_index_safe(self.collection, [('expires_at', 1)], 'idx_sessions_expires_at', expireAfterSeconds=0)
            create_index_safe(self.collection, [('user_id', 1)], 'idx_sessions_user_id')
            return True
        except Exception as e:
            logger.error("Failed to create sessions indexes", extra={"error": str(e)})
            return False

    def create(self, user_id: str) -> str:
        session_id = uuid.uuid4().hex
        now = datetime.now(timezone.utc)
        try:
            self.collection.insert_one({
                '_id': session_id,
                'user_id': user_id,
                'created_at': now,
                'expires_at': now + self.ttl,
            })
        except PyMongoError as e:
            logger.error("Failed to create session", extra={"userId": user_id, "error": str(e)})
            raise PersistenceError("Failed to create session") from e
        return session_id

    def get_user_id(self, session_id: str) -> str | None:
        try:
            doc = self.collection.find_one({'_id': session_id})
        except PyMongoError as e:
            logger.error("Failed to read session", extra={"error": str(e)})
            raise PersistenceError("Failed to read session") from e
        if not doc:
            return None
        # The TTL monitor runs about once a minute; expired rows can linger.
        expires_at = doc.get('expires_at')
        if expires_at is not None:
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
            if expires_at <= datetime.now(timezone.utc):
                return None
        return doc.get('user_id')

    def delete(self, session_id: str) -> bool:
        try:
            result = self.collection.delete_one({'_id': session_id})
        except PyMongoError as e:
            logger.error("Failed to delete session", extra={"error": str(e)})
            raise PersistenceError("Failed to delete session") from e
        return result.deleted_count > 0
