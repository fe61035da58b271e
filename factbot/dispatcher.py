"""
Per-message orchestration: decide what a line is and who handles it.
"""
from pymongo.errors import PyMongoError

from factbot.constants import MAX_SEARCH_RESULTS
from factbot.logger import logger
from factbot.parser import CommandKind, classify
from factbot.utils import get_mongodb_error_message


def get_help() -> str:
    return """
    *Teaching:*
    `<thing> is <description>` - remember a factoid
    `<thing> is also <description>` - add another possible answer
    `no, <thing> is <description>` - replace what I know
    `forget <thing>` - forget a factoid

    *Asking:*
    `<thing>?` - ask about a factoid
    `literal <thing>?` - show every stored answer
    `search for <words>` - list matching factoids (direct message only)
    `ask <bot> about <thing>` - learn a factoid from another infobot

    *Settings:*
    `settings` - show settings
    `set <name> <value>` / `unset <name>` - change a setting (ask, passive_ask, passive_learn, stopwords)

    Factoids starting with <reply> are said as-is, <action> ones are emoted,
    and <rss="URL"> is replaced by the feed's headlines.
    """


class Dispatcher:
    def __init__(self, facts, resolver, peers, transport, settings, store):
        self.facts = facts
        self.resolver = resolver
        self.peers = peers
        self.transport = transport
        self.settings = settings
        self.store = store

    def handle(self, message) -> str | None:
        """
        Process one incoming message and return the text to reply with, if any.
        Never raises: failures are logged and degrade to an apology or silence.
        """
        try:
            return self._handle(message)
        except PyMongoError as e:
            error_message = get_mongodb_error_message(e, "handle")
            return error_message if message.addressed else None
        except Exception:
            logger.exception("Failed to handle message from %s: %r", message.who, message.body)
            return None

    def _handle(self, message) -> str | None:
        parsed = classify(message.body, addressed=message.addressed)
        logger.debug("Classified %r as %s", message.body, parsed.kind.value)

        if parsed.kind is CommandKind.PEER_REPLY:
            self.peers.on_reply(parsed.token, parsed.payload, message.who)
            return None

        if parsed.kind is CommandKind.PEER_QUERY:
            self.peers.answer_query(parsed.token, parsed.subject, message.who)
            return None

        if parsed.kind is CommandKind.FORGET:
            if self.facts.delete(parsed.subject):
                return f"I forgot about {parsed.subject}"
            return f"I don't know anything about {parsed.subject}"

        if parsed.kind is CommandKind.ASK_PEER:
            self.peers.ask(parsed.subject, parsed.peer, message)
            return f"asking {parsed.peer} about {parsed.subject}.."

        if parsed.kind is CommandKind.SEARCH:
            return self.search(parsed.terms, message)

        if parsed.kind is CommandKind.SHOW_SETTINGS:
            return "\n".join(
                f"*{name}:* {getattr(self.settings, name) or 'N/A'}" for name in self.settings.names()
            )

        if parsed.kind is CommandKind.SET_SETTING:
            return self.update_setting(parsed.setting, parsed.value)

        if parsed.kind is CommandKind.HELP:
            return get_help()

        if parsed.kind is CommandKind.QUESTION:
            return self.answer(parsed, message)

        if parsed.kind is CommandKind.TEACH:
            return self.learn(parsed, message)

        return None

    def update_setting(self, name: str, value: str) -> str:
        try:
            self.settings.update(self.store, name, value)
        except KeyError:
            return f"I don't have a setting called {name}"
        if not value:
            return f"{name} cleared"
        return f"{name} set to {value}"

    def search(self, terms, message) -> str | None:
        # key listings can be long and noisy, keep them out of shared channels
        if not message.private:
            logger.debug("Ignoring search from %s outside a direct message", message.who)
            return None
        results = self.facts.search(*terms)
        if not results:
            return None
        return "Keys: " + ", ".join(f"'{key}'" for key in results[:MAX_SEARCH_RESULTS])

    def answer(self, parsed, message) -> str | None:
        if not (message.addressed or self.settings.passive_ask_enabled):
            return None

        answer = self.resolver.resolve(parsed.subject, literal=parsed.literal)
        if answer is None:
            if not message.addressed:
                return None
            peer = self.settings.ask_peer
            if peer and not parsed.literal:
                self.peers.ask(parsed.subject, peer, message)
            return "No clue. Sorry."

        if answer.emote:
            self.transport.emote(message.channel, answer.text)
            return None
        return answer.text

    def learn(self, parsed, message) -> str | None:
        if not (message.addressed or self.settings.passive_learn_enabled):
            return None

        subject = parsed.subject
        reason = self.settings.rejects_subject(subject)
        if reason:
            logger.debug("Not learning %r: %s", subject, reason)
            return None

        if parsed.replace:
            self.facts.delete(subject)
        elif self.facts.exists(subject) and not parsed.also:
            return f"But I already know something about {subject}"

        self.facts.add(subject, parsed.relation, *parsed.facts)
        logger.info("Learnt %r %s %r from %s", subject, parsed.relation, parsed.facts, message.who)
        return "ok" if message.addressed else None
