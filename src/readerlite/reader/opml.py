"""OPML export and import of subscription lists."""

import html
import re
from collections.abc import Iterable
from datetime import UTC, datetime
from xml.sax.saxutils import escape

OPML_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<opml version="2.0">
  <head><title>Reader Lite Export</title><dateCreated>{date_created}</dateCreated></head>
  <body>
    <outline text="Subscriptions">
      {outlines}
    </outline>
  </body>
</opml>"""

OUTLINE_TEMPLATE = '<outline type="rss" text="{url}" title="{url}" xmlUrl="{url}" />'

XML_URL_PATTERN = re.compile(r'xmlUrl="([^"]+)"')


def export_opml(urls: Iterable[str], now: datetime | None = None) -> str:
    """Render subscription URLs as an OPML 2.0 document."""
    now = now or datetime.now(UTC)
    outlines = "\n".join(
        OUTLINE_TEMPLATE.format(url=escape(url, {'"': "&quot;"})) for url in urls
    )
    return OPML_TEMPLATE.format(date_created=now.isoformat(), outlines=outlines)


def extract_urls(text: str) -> list[str]:
    """Pull every ``xmlUrl`` attribute value out of an OPML document."""
    return [html.unescape(match) for match in XML_URL_PATTERN.findall(text)]


def merge_urls(imported: Iterable[str], existing: Iterable[str]) -> list[str]:
    """Imported URLs first, then existing ones, without duplicates."""
    return list(dict.fromkeys([*imported, *existing]))
