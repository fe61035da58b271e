import os
import random
import threading

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from slack_bolt import App
from slack_bolt.adapter.fastapi import SlackRequestHandler

from factbot.logger import logger
from factbot.config import Settings, validate_environment_variables
from factbot.db import connect
from factbot.facts import FactStore
from factbot.feeds import FeedSummarizer
from factbot.answers import AnswerResolver
from factbot.peers import PeerQueryCoordinator
from factbot.dispatcher import Dispatcher
from factbot.transport import Message, SlackTransport
from factbot.utils import mentions_user, strip_address, strip_leading_mention, unescape_slack_text

# Validate environment variables at startup
validate_environment_variables()

# Slack app setup
slack_app = App(
    token=os.environ["SLACK_BOT_TOKEN"],
    signing_secret=os.environ["SLACK_SIGNING_SECRET"],
    # Ensure Slack gets an ACK within 3 seconds even if processing is longer
    process_before_response=True,
)

fastapi_app = FastAPI()
handler = SlackRequestHandler(slack_app)

BOT_NAME = os.getenv("BOT_NAME")

store = connect(os.environ["MONGO_URL"], os.getenv("MONGO_DB", "factbot"))
rng = random.Random()
transport = SlackTransport(slack_app.client)
facts = FactStore(store, rng=rng)
settings = Settings.load(store)
dispatcher = Dispatcher(
    facts=facts,
    resolver=AnswerResolver(facts, FeedSummarizer()),
    peers=PeerQueryCoordinator(transport, facts, settings, rng=rng),
    transport=transport,
    settings=settings,
    store=store,
)

# Messages are processed one at a time, start to finish
_dispatch_lock = threading.Lock()


def dispatch(message: Message, say) -> None:
    with _dispatch_lock:
        reply = dispatcher.handle(message)
    if reply:
        say(reply)


def _sender(event) -> str:
    user = event.get("user")
    return f"<@{user}>" if user else event.get("bot_id", "")


@slack_app.event("app_mention")
def handle_mention(event, say):
    text = unescape_slack_text(strip_leading_mention(event.get("text", "")))
    dispatch(
        Message(
            who=_sender(event),
            channel=event.get("channel"),
            body=text,
            addressed=True,
        ),
        say,
    )


@slack_app.event("message")
def handle_message(event, say, context):
    # Edits, deletions and joins carry no new text worth learning from
    if event.get("subtype") not in (None, "bot_message"):
        return

    raw_text = event.get("text", "") or ""
    bot_user_id = context.get("bot_user_id")
    if event.get("channel_type") != "im" and mentions_user(raw_text, bot_user_id):
        # Already delivered as an app_mention
        return

    private = event.get("channel_type") == "im"
    text, named = strip_address(unescape_slack_text(strip_leading_mention(raw_text)), BOT_NAME)
    dispatch(
        Message(
            who=_sender(event),
            channel=event.get("channel"),
            body=text,
            addressed=private or named,
            private=private,
        ),
        say,
    )


@fastapi_app.post("/slack/events")
async def slack_events(request: Request):
    try:
        await request.json()
    except Exception:
        raise HTTPException(status_code=400, detail="No JSON received")

    # Delegate to Slack Bolt FastAPI handler
    return await handler.handle(request)


@fastapi_app.get("/")
async def ping():
    return JSONResponse({"status": "ok"})


if __name__ == "__main__":
    import uvicorn

    logger.info("Starting factbot")
    uvicorn.run(
        "app:fastapi_app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 3000)),
        reload=os.getenv("ENV") != "prod",
    )
