"""
Turns a stored factoid into what the bot actually says.

Directives inside a factoid:
    <rss="URL">  replaced by the titles of the feed at URL
    <action>     at the start: the rest is emoted instead of said
    <reply>      at the start: the rest is said without "<subject> is"
"""
import re
from dataclasses import dataclass

RSS_DIRECTIVE = re.compile(r'<rss\s*=\s*"?([^>"]+)"?>', re.IGNORECASE)
ACTION_DIRECTIVE = re.compile(r"^<action>\s*", re.IGNORECASE)
REPLY_DIRECTIVE = re.compile(r"^<reply>\s*", re.IGNORECASE)


@dataclass(frozen=True)
class Answer:
    text: str
    emote: bool = False


class AnswerResolver:
    def __init__(self, facts, feeds):
        self.facts = facts
        self.feeds = feeds

    def expand_feeds(self, factoid: str) -> str:
        return RSS_DIRECTIVE.sub(lambda m: self.feeds.summarize(m.group(1).strip()), factoid)

    def resolve(self, subject: str, literal: bool = False) -> Answer | None:
        """
        Build the answer for `subject` as the user typed it, or None if unknown.

        Literal answers are diagnostic: every alternative, no directives applied.
        """
        found = self.facts.get(subject, literal=literal)
        if not found:
            return None
        relation, factoid = found

        if literal:
            return Answer(f"{subject} {relation} {factoid}")

        factoid = self.expand_feeds(factoid)

        action = ACTION_DIRECTIVE.match(factoid)
        if action:
            return Answer(factoid[action.end():], emote=True)

        reply = REPLY_DIRECTIVE.match(factoid)
        if reply:
            return Answer(factoid[reply.end():])

        return Answer(f"{subject} {relation} {factoid}")
