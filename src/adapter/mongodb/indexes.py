"""MongoDB index management utilities.

Index creation shared by every Mongo repository. The unique identity indexes
on users are what stop two concurrent sign-ins from creating duplicate
accounts, so a stale index definition is replaced rather than tolerated.
"""

from logging import getLogger

from pymongo.errors import PyMongoError

logger = getLogger(__name__)


def create_index_safe(collection, keys: list, name: str, **kwargs) -> bool:
    """Create an index, replacing an existing one that conflicts with it.

    A conflict is either the same name with different keys/options or the
    same keys under a different name.
    """
    try:
        collection.create_index(keys, name=name, **kwargs)
        return True
    except PyMongoError as e:
        if "already exists" not in str(e) and "Conflict" not in str(e):
            raise
        return _replace_conflicting(collection, keys, name, **kwargs)


def _replace_conflicting(collection, keys: list, name: str, **kwargs) -> bool:
    wanted_keys = dict(keys)

    for existing_name, info in collection.index_information().items():
        if existing_name == '_id_':
            continue

        same_name = existing_name == name
        same_keys = dict(info.get('key', [])) == wanted_keys
        if not (same_name or same_keys):
            continue

        logger.warning("Dropping conflicting index", extra={"index": existing_name, "collection": collection.name})
        collection.drop_index(existing_name)
        collection.create_index(keys, name=name, **kwargs)
        logger.info("Recreated index", extra={"index": name, "collection": collection.name})
        return True

    logger.error("Failed to resolve index conflict", extra={"index": name})
    return False


def ensure_all_indexes(db) -> bool:
    """Ensure indexes for all collections. Called at app startup."""
    from adapter.mongodb.game_repository import MongoGameRepository
    from adapter.mongodb.session_store import MongoSessionStore
    from adapter.mongodb.user_repository import MongoUserRepository

    results = [
        MongoUserRepository(db).ensure_indexes(),
        MongoSessionStore(db).ensure_indexes(),
        MongoGameRepository(db).ensure_indexes(),
    ]
    return all(results)
