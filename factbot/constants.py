"""
Tunable limits shared across the bot.
"""
import os

MONGODB_SERVER_SELECTION_TIMEOUT_MS = 5000

# Long factoid keys are almost always a mis-parse of a sentence
MAX_SUBJECT_LENGTH = 25

MAX_SEARCH_RESULTS = 21

FEED_FETCH_TIMEOUT = float(os.getenv("FEED_FETCH_TIMEOUT", "10"))
FEED_MAX_BYTES = 2 * 1024 * 1024
FEED_USER_AGENT = "factbot/1.0 (+https://github.com/factbot)"

PEER_QUERY_TTL = float(os.getenv("PEER_QUERY_TTL", "3600"))
MAX_PENDING_PEER_QUERIES = 256

DB_VERSION = "1"
