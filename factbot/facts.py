"""
Factoid storage on top of the key/value store.

A factoid record is stored under 'infobot_<subject>' as

    relation<TAB>fact<TAB>|alternate<TAB>|alternate...

Facts without the leading '|' are "simple" facts and are spoken together,
joined with " or ", as the first alternative. Every '|' fact is an
alternative of its own. Tabs are stripped from facts on write so the
separator can never appear inside one.
"""
import random
from dataclasses import dataclass, field

from factbot.logger import logger
from factbot.utils import normalize_subject

FACT_KEY_PREFIX = "infobot_"
FIELD_SEPARATOR = "\t"
ALTERNATE_MARKER = "|"


@dataclass
class FactoidRecord:
    relation: str
    entries: list[str] = field(default_factory=list)

    @classmethod
    def decode(cls, raw: str) -> "FactoidRecord | None":
        if not raw:
            return None
        relation, *entries = raw.split(FIELD_SEPARATOR)
        return cls(relation=relation, entries=[e for e in entries if e])

    def encode(self) -> str:
        return FIELD_SEPARATOR.join([self.relation, *self.entries])

    @property
    def simple(self) -> list[str]:
        return [e for e in self.entries if not e.startswith(ALTERNATE_MARKER)]

    @property
    def alternates(self) -> list[str]:
        return [e[len(ALTERNATE_MARKER):] for e in self.entries if e.startswith(ALTERNATE_MARKER)]

    def alternatives(self) -> list[str]:
        """The answers one query can pick from; all simple facts count as one."""
        combined = " or ".join(self.simple)
        return ([combined] if combined else []) + self.alternates


class FactStore:
    def __init__(self, store, rng: random.Random | None = None):
        self.store = store
        self.rng = rng or random.Random()

    @staticmethod
    def key(subject: str) -> str:
        return FACT_KEY_PREFIX + normalize_subject(subject)

    def record(self, subject: str) -> FactoidRecord | None:
        return FactoidRecord.decode(self.store.get(self.key(subject)))

    def exists(self, subject: str) -> bool:
        record = self.record(subject)
        return bool(record and record.alternatives())

    def get(self, subject: str, literal: bool = False) -> tuple[str, str] | None:
        """
        Look up a factoid.

        Returns (relation, answer), or None if nothing is known. In literal
        mode the relation is tagged '=is=' and every alternative is shown
        joined by ' =or= '; otherwise one alternative is picked at random.
        """
        record = self.record(subject)
        if not record:
            return None
        alternatives = record.alternatives()
        if not alternatives:
            return None

        if literal:
            return f"={record.relation}=", " =or= ".join(alternatives)
        return record.relation, self.rng.choice(alternatives)

    def add(self, subject: str, relation: str, *facts: str) -> None:
        """
        Append facts to a subject's record, creating it with `relation` if needed.

        The first fact of a new record is stored as a simple fact; every other
        fact becomes an alternative of its own.
        """
        # We're splitting on tabs, so we can't store them.
        facts = [f.replace(FIELD_SEPARATOR, "").strip() for f in facts]
        facts = [f for f in facts if f and f != ALTERNATE_MARKER]
        if not facts:
            return

        record = self.record(subject) or FactoidRecord(relation=relation.lower())
        for fact in facts:
            if record.entries and not fact.startswith(ALTERNATE_MARKER):
                fact = ALTERNATE_MARKER + fact
            record.entries.append(fact)

        self.store.set(self.key(subject), record.encode())
        logger.debug("Stored %d fact(s) about %r", len(facts), normalize_subject(subject))

    def delete(self, subject: str) -> bool:
        key = self.key(subject)
        existed = self.store.get(key) is not None
        if existed:
            self.store.unset(key)
            logger.debug("Deleted factoid %r", normalize_subject(subject))
        return existed

    def search(self, *terms: str) -> list[str]:
        """All subjects containing every term, case-insensitively. Sorted."""
        subjects = [
            key[len(FACT_KEY_PREFIX):]
            for key in self.store.list_keys()
            if key.startswith(FACT_KEY_PREFIX)
        ]
        for term in terms:
            term = term.casefold()
            subjects = [s for s in subjects if term in s]
        return sorted(subjects)
