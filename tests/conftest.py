"""
Shared fixtures: an in-memory key/value store and a transport that records
what the bot would have sent, so tests need neither MongoDB nor Slack.
"""
import random

import pytest

from factbot.answers import AnswerResolver
from factbot.config import Settings
from factbot.dispatcher import Dispatcher
from factbot.facts import FactStore
from factbot.peers import PeerQueryCoordinator
from factbot.transport import Message


class InMemoryStore:
    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value

    def unset(self, key):
        return self.data.pop(key, None) is not None

    def list_keys(self):
        return list(self.data)


class RecordingTransport:
    def __init__(self):
        self.sent = []
        self.emotes = []

    def send(self, target, text):
        self.sent.append((target, text))

    def emote(self, target, text):
        self.emotes.append((target, text))


class StaticFeeds:
    """Feed summarizer stand-in returning a canned line per URL."""

    def __init__(self, summaries=None):
        self.summaries = summaries or {}
        self.requested = []

    def summarize(self, url):
        self.requested.append(url)
        return self.summaries.get(url, "")


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def facts(store, rng):
    return FactStore(store, rng=rng)


@pytest.fixture
def feeds():
    return StaticFeeds()


@pytest.fixture
def peers(transport, facts, settings, rng):
    return PeerQueryCoordinator(transport, facts, settings, rng=rng)


@pytest.fixture
def settings(store):
    return Settings.load(store)


@pytest.fixture
def dispatcher(facts, feeds, peers, transport, settings, store):
    return Dispatcher(
        facts=facts,
        resolver=AnswerResolver(facts, feeds),
        peers=peers,
        transport=transport,
        settings=settings,
        store=store,
    )


def addressed(body, who="<@U1>", channel="C1"):
    return Message(who=who, channel=channel, body=body, addressed=True)


def overheard(body, who="<@U1>", channel="C1"):
    return Message(who=who, channel=channel, body=body)


def direct(body, who="<@U1>", channel="D1"):
    return Message(who=who, channel=channel, body=body, addressed=True, private=True)
