"""
RSS/Atom feed summaries for the <rss="URL"> factoid directive.
"""
import time

import feedparser
import requests

from factbot.constants import FEED_FETCH_TIMEOUT, FEED_MAX_BYTES, FEED_USER_AGENT
from factbot.logger import logger


def fetch_url(url: str, timeout: float = FEED_FETCH_TIMEOUT, max_bytes: int = FEED_MAX_BYTES) -> bytes:
    """
    Download `url`, giving up once the whole transfer takes longer than
    `timeout` seconds or grows past `max_bytes`. The requests timeout alone only
    bounds each socket read, so a server trickling bytes could stall us forever.
    """
    deadline = time.monotonic() + timeout
    r = requests.get(url, headers={"User-Agent": FEED_USER_AGENT}, timeout=timeout, stream=True)
    try:
        r.raise_for_status()
        body = bytearray()
        while True:
            # read1 returns after a single socket read instead of filling the buffer
            chunk = r.raw.read1(8192, decode_content=True)
            if not chunk:
                break
            body.extend(chunk)
            if time.monotonic() > deadline:
                raise requests.Timeout(f"download took longer than {timeout:g}s")
            if len(body) > max_bytes:
                raise requests.Timeout(f"feed is larger than {max_bytes} bytes")
        return bytes(body)
    finally:
        r.close()


class FeedSummarizer:
    """
    Renders a feed as one line of entry titles.

    `fetch` is any callable taking (url, timeout) and returning the document
    bytes; it defaults to an HTTP GET. Answering blocks on the fetch, so the
    timeout is always applied.
    """

    def __init__(self, fetch=fetch_url, timeout: float = FEED_FETCH_TIMEOUT):
        self.fetch = fetch
        self.timeout = timeout

    def summarize(self, url: str) -> str:
        try:
            document = self.fetch(url, self.timeout)
            feed = feedparser.parse(document)
            if feed.bozo and not feed.entries:
                raise feed.bozo_exception
        except Exception as e:  # noqa: BLE001 - feed errors are shown inline, never raised
            logger.warning("Failed to read RSS feed %s: %s", url, e)
            return f"<< Error parsing RSS from {url}: {e} >>"

        titles = []
        for entry in feed.entries:
            title = " ".join((entry.get("title") or "").split())
            if title:
                titles.append(title)
        logger.debug("RSS feed %s has %d titled entries", url, len(titles))
        return "; ".join(titles)
