"""
Chat transport: the incoming message shape and the outgoing Slack calls.
"""
import re
from dataclasses import dataclass

from slack_sdk.errors import SlackApiError

from factbot.logger import logger


def slack_target(target: str) -> str:
    """Accept a raw ID or a Slack mention like '<@U123>' / '<@U123|name>'."""
    return re.sub(r"^<[@#]([^>|]+)(?:\|[^>]*)?>$", r"\1", target.strip())


@dataclass(frozen=True)
class Message:
    who: str
    channel: str
    body: str
    # addressed: explicitly directed at the bot (mention, DM or name prefix)
    addressed: bool = False
    # private: a direct message conversation rather than a shared channel
    private: bool = False


class SlackTransport:
    """
    Sends text and emotes through the Slack Web API.

    A target is a channel ID or a user ID; posting to a user ID lands in the
    bot's direct message conversation with that user.
    """

    def __init__(self, client):
        self.client = client

    def send(self, target: str, text: str) -> None:
        try:
            self.client.chat_postMessage(channel=slack_target(target), text=text)
        except SlackApiError as e:
            logger.error("Failed to send message to %s: %s", target, e.response.get("error"))

    def emote(self, target: str, text: str) -> None:
        try:
            self.client.chat_meMessage(channel=slack_target(target), text=text)
        except SlackApiError as e:
            logger.error("Failed to send emote to %s: %s", target, e.response.get("error"))
