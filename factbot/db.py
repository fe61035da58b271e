from pymongo import MongoClient
from pymongo.errors import ConnectionFailure, ConfigurationError

from factbot.logger import logger
from factbot.constants import MONGODB_SERVER_SELECTION_TIMEOUT_MS


class MongoKeyValueStore:
    """
    String key/value store on top of a single MongoDB collection.
    Each entry is one document: {"_id": key, "value": value}.
    """

    def __init__(self, collection):
        self.collection = collection

    def get(self, key: str) -> str | None:
        doc = self.collection.find_one({"_id": key})
        return doc.get("value") if doc else None

    def set(self, key: str, value: str) -> None:
        self.collection.update_one({"_id": key}, {"$set": {"value": value}}, upsert=True)

    def unset(self, key: str) -> bool:
        result = self.collection.delete_one({"_id": key})
        return result.deleted_count > 0

    def list_keys(self) -> list[str]:
        return [doc["_id"] for doc in self.collection.find({}, {"_id": 1})]


def connect(mongo_url: str, db_name: str = "factbot") -> MongoKeyValueStore:
    """
    Connect to MongoDB and return the store backing the bot's memory.
    Fails loudly: the bot is useless without its store.
    """
    try:
        if not mongo_url:
            raise ValueError("MONGO_URL environment variable is not set")

        client = MongoClient(mongo_url, serverSelectionTimeoutMS=MONGODB_SERVER_SELECTION_TIMEOUT_MS)
        # Test the connection
        client.admin.command('ping')
        collection = client[db_name]["store"]
        logger.info("MongoDB connection established successfully")
        return MongoKeyValueStore(collection)
    except (ConnectionFailure, ConfigurationError, ValueError) as e:
        logger.critical("Failed to connect to MongoDB: %s", e)
        raise
    except Exception as e:
        logger.critical("Unexpected error connecting to MongoDB: %s", e)
        raise
