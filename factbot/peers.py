"""
Asking other infobots about factoids.

A query goes out as a direct message ':INFOBOT:QUERY <token> <subject>'.
The answer comes back, whenever the peer gets round to it, as
':INFOBOT:REPLY <token> <subject> =<relation>=> <fact>'. The token is the only
link between the two, so the requester's context is kept here until then.
"""
import random
import re
import time
from collections import OrderedDict
from dataclasses import dataclass

from factbot.constants import MAX_PENDING_PEER_QUERIES, PEER_QUERY_TTL
from factbot.logger import logger
from factbot.parser import PEER_QUERY_PREFIX, PEER_REPLY_PREFIX
from factbot.utils import normalize_subject

REPLY_PAYLOAD = re.compile(r"^(.*) =(\w+)=> (.*)$")


@dataclass(frozen=True)
class PendingQuery:
    token: str
    subject: str
    peer: str
    who: str
    channel: str
    created_at: float


class PeerQueryCoordinator:
    def __init__(
        self,
        transport,
        facts,
        settings,
        rng: random.Random | None = None,
        ttl: float = PEER_QUERY_TTL,
        max_pending: int = MAX_PENDING_PEER_QUERIES,
        clock=time.monotonic,
    ):
        self.transport = transport
        self.facts = facts
        self.settings = settings
        self.rng = rng or random.Random()
        self.ttl = ttl
        self.max_pending = max_pending
        self.clock = clock
        self.pending: OrderedDict[str, PendingQuery] = OrderedDict()

    def _new_token(self) -> str:
        while True:
            token = f"{self.rng.getrandbits(64):016x}"
            if token not in self.pending:
                return token

    def _evict(self) -> None:
        now = self.clock()
        expired = [t for t, q in self.pending.items() if now - q.created_at > self.ttl]
        for token in expired:
            query = self.pending.pop(token)
            logger.info("Peer query %s to %s about %r expired unanswered", token, query.peer, query.subject)

        while len(self.pending) >= self.max_pending:
            token, query = self.pending.popitem(last=False)
            logger.warning("Dropping oldest pending peer query %s to %s", token, query.peer)

    def ask(self, subject: str, peer: str, message) -> str:
        """Send a query to `peer`; the answer is reported back in `message`'s channel."""
        self._evict()
        token = self._new_token()
        self.pending[token] = PendingQuery(
            token=token,
            subject=subject,
            peer=peer,
            who=message.who,
            channel=message.channel,
            created_at=self.clock(),
        )
        self.transport.send(peer, f"{PEER_QUERY_PREFIX} {token} {subject}")
        logger.info("Asked %s about %r (token %s)", peer, subject, token)
        return token

    def on_reply(self, token: str, payload: str, from_who: str) -> bool:
        """
        Handle a peer's reply. Replies to tokens we don't hold (never asked,
        already answered, lost on restart) are ignored and return False.
        """
        query = self.pending.pop(token, None)
        if query is None:
            logger.debug("Ignoring peer reply from %s with unknown token %s", from_who, token)
            return False

        match = REPLY_PAYLOAD.match(payload)
        if not match:
            logger.warning("Malformed peer reply from %s for token %s: %r", from_who, token, payload)
            return True
        subject, relation, factoid = match.groups()

        if normalize_subject(subject) != normalize_subject(query.subject):
            logger.warning(
                "Peer %s answered token %s about %r, but we asked about %r; ignoring",
                from_who, token, subject, query.subject,
            )
            return True
        reason = self.settings.rejects_subject(subject)
        if reason:
            logger.info("Not learning %r from %s: %s", subject, from_who, reason)
            return True

        self.facts.add(subject, relation, *factoid.split(" =or= "))
        logger.info("Learnt about %r from %s (asked for %r)", subject, from_who, query.subject)

        self.transport.send(query.channel, f"Learnt about {subject} from {from_who}")
        return True

    def answer_query(self, token: str, subject: str, from_who: str) -> bool:
        """Reply to another infobot's query, if we know anything about `subject`."""
        found = self.facts.get(subject, literal=True)
        if not found:
            logger.debug("Peer %s asked about unknown %r", from_who, subject)
            return False
        relation, factoid = found
        # literal relation is already '=is=', the protocol arrow adds '>'
        self.transport.send(from_who, f"{PEER_REPLY_PREFIX} {token} {subject} {relation}> {factoid}")
        return True
