"""
Configuration: environment variable validation at startup and the
runtime settings that users can change from chat.
"""
import os
import re
import sys
from dataclasses import dataclass, fields

from factbot.constants import DB_VERSION, MAX_SUBJECT_LENGTH
from factbot.logger import logger

SETTING_KEY_PREFIX = "user_"
DB_VERSION_KEY = "db_version"

_FALSE_VALUES = {"", "0", "false", "off", "no"}


def validate_environment_variables() -> None:
    """
    Validate all required environment variables at startup.
    Exits the application with a clear error message if any are missing.
    """
    required_vars = {
        "SLACK_BOT_TOKEN": "Slack bot token for authentication",
        "SLACK_SIGNING_SECRET": "Slack signing secret for request verification",
        "MONGO_URL": "MongoDB connection URL",
    }

    optional_vars = {
        "MONGO_DB": "MongoDB database name (defaults to 'factbot')",
        "BOT_NAME": "Name that addresses the bot in channels, e.g. 'factbot, water?'",
        "FEED_FETCH_TIMEOUT": "Seconds to wait for an RSS feed (defaults to 10)",
        "PEER_QUERY_TTL": "Seconds to keep unanswered peer queries (defaults to 3600)",
        "PORT": "Server port (defaults to 3000 if not set)",
        "ENV": "Environment (prod/dev, defaults to dev if not set)",
    }

    missing_vars = []

    for var_name, description in required_vars.items():
        value = os.getenv(var_name)
        if not value or not value.strip():
            missing_vars.append(f"  - {var_name}: {description}")
            logger.error(f"Missing required environment variable: {var_name}")

    if missing_vars:
        error_message = (
            "Missing required environment variables:\n"
            + "\n".join(missing_vars)
            + "\n\nPlease set these variables before starting the application."
        )
        logger.critical(error_message)
        print(error_message, file=sys.stderr)
        sys.exit(1)

    for var_name, description in optional_vars.items():
        value = os.getenv(var_name)
        if not value or not value.strip():
            logger.info(f"Optional environment variable not set: {var_name} - {description}")
        else:
            logger.debug(f"Environment variable set: {var_name}")

    logger.info("Environment variable validation completed successfully")


@dataclass
class Settings:
    """
    Per-process settings, persisted in the key/value store as 'user_<name>'.

    ask:           peer bot to ask about unknown factoids
    passive_ask:   answer questions that were not addressed to the bot
    passive_learn: learn factoids from messages not addressed to the bot
    stopwords:     comma/space separated subjects that can never be taught
    """

    ask: str = ""
    passive_ask: str = ""
    passive_learn: str = ""
    stopwords: str = ""

    @classmethod
    def names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def load(cls, store) -> "Settings":
        """
        Read settings from the store, writing empty defaults for any that are
        missing so they show up for users listing the settings.
        """
        values = {}
        for name in cls.names():
            value = store.get(SETTING_KEY_PREFIX + name)
            if value is None:
                value = ""
                store.set(SETTING_KEY_PREFIX + name, value)
            values[name] = value

        if not store.get(DB_VERSION_KEY):
            store.set(DB_VERSION_KEY, DB_VERSION)

        return cls(**values)

    def update(self, store, name: str, value: str) -> None:
        """Change one setting and persist it. Raises KeyError for unknown names."""
        if name not in self.names():
            raise KeyError(name)
        value = (value or "").strip()
        store.set(SETTING_KEY_PREFIX + name, value)
        setattr(self, name, value)
        logger.info("Setting %s changed to %r", name, value)

    @property
    def ask_peer(self) -> str | None:
        return self.ask.strip() or None

    @property
    def passive_ask_enabled(self) -> bool:
        return self.passive_ask.strip().lower() not in _FALSE_VALUES

    @property
    def passive_learn_enabled(self) -> bool:
        return self.passive_learn.strip().lower() not in _FALSE_VALUES

    @property
    def stopword_list(self) -> list[str]:
        return [word for word in re.split(r"[\s,]+", self.stopwords) if word]

    def is_stopword(self, subject: str) -> bool:
        subject = subject.strip().casefold()
        return any(word.casefold() == subject for word in self.stopword_list)

    def rejects_subject(self, subject: str) -> str | None:
        """
        Why `subject` can never be taught, or None if it can. Applies to every
        way a factoid gets learnt: chat statements and peer replies alike.
        """
        subject = subject.strip()
        if len(subject) > MAX_SUBJECT_LENGTH:
            return "subject too long"
        if self.is_stopword(subject):
            return "subject is a stopword"
        return None
