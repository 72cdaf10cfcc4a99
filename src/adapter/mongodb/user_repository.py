"""MongoDB implementation of UserRepository."""

from logging import getLogger
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError
from adapter.mongodb import USERS_COLLECTION_NAME
from domain.model.errors import PersistenceError, UniqueViolationError
from domain.model.user import UNIQUE_FIELDS, USER_FIELDS, User

logger = getLogger(__name__)


class MongoUserRepository:
    def __init__(self, db: Database):
        self.collection = db[USERS_COLLECTION_NAME]

    def ensure_indexes(self) -> bool:
        """Create indexes for users collection.

        Identity fields are unique only among documents that carry them, so
        any number of users may lack e.g. a steam_id.
        """
        from adapter.mongodb.indexes import create_index_safe

        try:
            for field_name in UNIQUE_FIELDS:
                create_index_safe(
                    self.collection,
                    [(field_name, 1)],
                    f'idx_users_{field_name}',
                    unique=True,
                    partialFilterExpression={field_name: {'$type': 'string'}},
                )
            create_index_safe(self.collection, [('created_at', -1)], 'idx_users_created_at')
            return True
        except Exception as e:
            logger.error("Failed to create users indexes", extra={"error": str(e)})
            return False

    def _to_domain(self, doc: dict) -> User:
        """Convert MongoDB document to User domain model."""
        attrs = {name: doc.get(name) for name in USER_FIELDS if name != 'id'}
        return User(id=doc['_id'], **attrs)

    def _to_document(self, user: User) -> dict:
        # Absent rather than null, so partial unique indexes ignore the field.
        doc = {'_id': user.id}
        for name in USER_FIELDS:
            value = getattr(user, name)
            if name != 'id' and value is not None:
                doc[name] = value
        return doc

    def create(self, user: User) -> User:
        """Insert a new user document."""
        try:
            self.collection.insert_one(self._to_document(user))
        except DuplicateKeyError as e:
            field_name = _duplicate_field(e)
            logger.warning("User creation failed: duplicate key", extra={"field": field_name})
            raise UniqueViolationError("Duplicate user identity", field_name=field_name) from e
        except PyMongoError as e:
            logger.error("Failed to create user", extra={"userId": user.id, "error": str(e)})
            raise PersistenceError("Failed to create user") from e

        logger.info("User created", extra={"userId": user.id})
        return user

    def update(self, user_id: str, fields: dict) -> bool:
        """$set the given fields and $unset the ones given as None.

        Fields not named are left untouched.
        """
        unknown = set(fields) - (set(USER_FIELDS) - {'id'})
        if unknown:
            raise ValueError(f"Not updatable user field(s): {sorted(unknown)}")

        operations = {}
        to_set = {name: value for name, value in fields.items() if value is not None}
        to_unset = {name: '' for name, value in fields.items() if value is None}
        if to_set:
            operations['$set'] = to_set
        if to_unset:
            operations['$unset'] = to_unset
        if not operations:
            return True

        try:
            result = self.collection.update_one({'_id': user_id}, operations)
        except DuplicateKeyError as e:
            field_name = _duplicate_field(e)
            logger.warning("User update failed: duplicate key", extra={"userId": user_id, "field": field_name})
            raise UniqueViolationError("Duplicate user identity", field_name=field_name) from e
        except PyMongoError as e:
            logger.error("Failed to update user", extra={"userId": user_id, "error": str(e)})
            raise PersistenceError("Failed to update user") from e

        if result.matched_count == 0:
            logger.warning("User update matched no document", extra={"userId": user_id})
            return False
        return True

    def find_one(self, **filters) -> User | None:
        """Find a user matching every given field. Return None if not found."""
        query = {('_id' if key == 'id' else key): value for key, value in filters.items()}
        try:
            doc = self.collection.find_one(query)
        except PyMongoError as e:
            logger.error("Failed to find user", extra={"fields": sorted(filters), "error": str(e)})
            raise PersistenceError("Failed to look up user") from e
        return self._to_domain(doc) if doc else None

    def get_by_id(self, user_id: str) -> User | None:
        """Find a user by ID. Return User or None if not found."""
        return self.find_one(id=user_id)


def _duplicate_field(error: DuplicateKeyError) -> str | None:
    """Name of the field behind an E11000 error, when the server reports it."""
    details = error.details or {}
    key_pattern = details.get('keyPattern') or {}
    if key_pattern:
        return next(iter(key_pattern))
    return None
