"""
Classifies one incoming line of chat text.

`classify` runs an ordered list of rules and returns the first match as a
ParsedLine tagged with its CommandKind. Command rules only apply to lines
addressed to the bot; everything else can also be picked up passively.
"""
import re
from dataclasses import dataclass
from enum import Enum

PEER_QUERY_PREFIX = ":INFOBOT:QUERY"
PEER_REPLY_PREFIX = ":INFOBOT:REPLY"


class CommandKind(Enum):
    PEER_REPLY = "peer_reply"
    PEER_QUERY = "peer_query"
    FORGET = "forget"
    ASK_PEER = "ask_peer"
    SEARCH = "search"
    SHOW_SETTINGS = "show_settings"
    SET_SETTING = "set_setting"
    HELP = "help"
    QUESTION = "question"
    TEACH = "teach"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class ParsedLine:
    kind: CommandKind
    subject: str = ""
    # ask / peer protocol
    peer: str = ""
    token: str = ""
    payload: str = ""
    # search
    terms: tuple[str, ...] = ()
    # question
    literal: bool = False
    # teach
    relation: str = ""
    facts: tuple[str, ...] = ()
    replace: bool = False
    also: bool = False
    # settings
    setting: str = ""
    value: str = ""


def parse_peer_reply(text: str) -> ParsedLine | None:
    match = re.match(rf"^{PEER_REPLY_PREFIX} (\S+) (.*)$", text)
    if not match:
        return None
    return ParsedLine(CommandKind.PEER_REPLY, token=match.group(1), payload=match.group(2))


def parse_peer_query(text: str) -> ParsedLine | None:
    match = re.match(rf"^{PEER_QUERY_PREFIX} (\S+) (.+)$", text)
    if not match:
        return None
    return ParsedLine(CommandKind.PEER_QUERY, token=match.group(1), subject=match.group(2).strip())


def parse_forget(text: str) -> ParsedLine | None:
    match = re.match(r"^forget\s+(.*\S)\s*$", text, re.IGNORECASE)
    if not match:
        return None
    return ParsedLine(CommandKind.FORGET, subject=match.group(1))


def parse_ask_peer(text: str) -> ParsedLine | None:
    match = re.match(r"^ask\s+(\S+)\s+about\s+(.*\S)\s*$", text, re.IGNORECASE)
    if not match:
        return None
    return ParsedLine(CommandKind.ASK_PEER, peer=match.group(1), subject=match.group(2).rstrip("?").strip())


def parse_search(text: str) -> ParsedLine | None:
    match = re.match(r"^search\s+for\s+(.*\S)\s*$", text, re.IGNORECASE)
    if not match:
        return None
    return ParsedLine(CommandKind.SEARCH, terms=tuple(match.group(1).split()))


def parse_settings(text: str) -> ParsedLine | None:
    if re.match(r"^settings\s*$", text, re.IGNORECASE):
        return ParsedLine(CommandKind.SHOW_SETTINGS)

    match = re.match(r"^set\s+(\w+)\s+(?:to\s+)?(.*\S)\s*$", text, re.IGNORECASE)
    if match:
        return ParsedLine(CommandKind.SET_SETTING, setting=match.group(1).lower(), value=match.group(2))

    match = re.match(r"^unset\s+(\w+)\s*$", text, re.IGNORECASE)
    if match:
        return ParsedLine(CommandKind.SET_SETTING, setting=match.group(1).lower(), value="")
    return None


def parse_help(text: str) -> ParsedLine | None:
    if re.match(r"^help\s*$", text, re.IGNORECASE):
        return ParsedLine(CommandKind.HELP)
    return None


def parse_question(text: str) -> ParsedLine | None:
    match = re.match(r"^(.*?)\s*\?+\s*$", text, re.DOTALL)
    if not match:
        return None
    subject = match.group(1).strip()

    literal = re.match(r"^literal\s+", subject, re.IGNORECASE)
    if literal:
        subject = subject[literal.end():]
    if not subject:
        return None
    return ParsedLine(CommandKind.QUESTION, subject=subject, literal=bool(literal))


def parse_teach(text: str) -> ParsedLine | None:
    # 'is' wins over 'are' when a line contains both
    match = (
        re.match(r"^(.*?)\s+(is)\s+(.*)$", text, re.IGNORECASE | re.DOTALL)
        or re.match(r"^(.*?)\s+(are)\s+(.*)$", text, re.IGNORECASE | re.DOTALL)
    )
    if not match:
        return None
    subject, relation, description = match.groups()

    # corrections and additions
    replace = re.match(r"^no(?:,\s*|\s+)", subject, re.IGNORECASE)
    if replace:
        subject = subject[replace.end():]
    also = re.match(r"^also\s+", description, re.IGNORECASE)
    if also:
        description = description[also.end():]

    subject = subject.strip()
    facts = tuple(f.strip() for f in re.split(r"\s+or\s+|\|", description) if f.strip())
    if not subject or not facts:
        return None

    return ParsedLine(
        CommandKind.TEACH,
        subject=subject,
        relation=relation.lower(),
        facts=facts,
        replace=bool(replace),
        also=bool(also),
    )


PROTOCOL_RULES = (parse_peer_reply, parse_peer_query)
COMMAND_RULES = (parse_forget, parse_ask_peer, parse_search, parse_settings, parse_help)
STATEMENT_RULES = (parse_question, parse_teach)


def classify(text: str, addressed: bool = True) -> ParsedLine:
    text = (text or "").strip()
    rules = PROTOCOL_RULES + (COMMAND_RULES if addressed else ()) + STATEMENT_RULES
    for rule in rules:
        parsed = rule(text)
        if parsed:
            return parsed
    return ParsedLine(CommandKind.UNRECOGNIZED)
