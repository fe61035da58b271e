import html
import re


def normalize_subject(subject: str) -> str:
    """
    Turn a factoid subject into its storage form: trimmed, inner whitespace
    collapsed and case-folded, so "Water ", "water" and "WATER" share a record.
    """
    return " ".join((subject or "").split()).casefold()


def strip_leading_mention(text: str) -> str:
    """
    Remove a leading Slack user mention like '<@U123ABC>' plus any following whitespace.
    This helps us reason about the actual user message length and content.
    """
    return re.sub(r"^<@[^>]+>\s*", "", text or "").strip()


def mentions_user(text: str, user_id: str | None) -> bool:
    """Whether Slack text mentions `user_id` anywhere, as '<@U123>' or '<@U123|name>'."""
    if not text or not user_id:
        return False
    return re.search(rf"<@{re.escape(user_id)}(?:\|[^>]*)?>", text) is not None


def strip_address(text: str, bot_name: str | None) -> tuple[str, bool]:
    """
    Detect a plain-text address like 'factbot, water?' or 'factbot: water is wet'.

    Returns:
        (text without the address prefix, whether the prefix was present)
    """
    if not text or not bot_name:
        return text or "", False

    match = re.match(rf"^\s*{re.escape(bot_name)}\s*[,:]\s*", text, re.IGNORECASE)
    if not match:
        return text, False
    return text[match.end():].strip(), True


def unescape_slack_text(text: str) -> str:
    """
    Undo Slack's message formatting so factoids are stored as the user typed them.

    Slack escapes '&', '<' and '>' as HTML entities and wraps URLs as
    '<http://example.com|example.com>'. Factoid directives such as
    '<reply>' and '<rss="...">' need the raw characters back.
    """
    if not text:
        return ""
    # Links first, while the real angle brackets are still Slack's own markup
    text = re.sub(r"<((?:https?|mailto):[^|>]+)(?:\|[^>]*)?>", r"\1", text)
    return html.unescape(text)


def get_mongodb_error_message(error, operation_name: str = "operation") -> str:
    """
    Log a pymongo error and return what the bot should say about it.
    """
    from pymongo.errors import ConnectionFailure
    from factbot.logger import logger

    logger.exception("MongoDB error in %s: %s", operation_name, error)

    if isinstance(error, ConnectionFailure):
        return "I'm having trouble connecting to my memory. Please try again in a moment."
    return "Something went wrong while reading my memory. Please try again in a moment."
