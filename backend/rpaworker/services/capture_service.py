"""Page capture — screenshot plus interactive element map for selector picking."""

from __future__ import annotations

import base64
import logging
import uuid
from typing import Any

from rpaworker.runtime.pool import BrowserPool

logger = logging.getLogger("rpaworker.capture")

INTERACTIVE_SELECTORS = "a, button, input, select, textarea, [role='button'], [onclick]"

# Runs in the page; returns one descriptor per interactive element, capped at `limit`.
_ELEMENTS_JS = """
({ selectors, limit }) => {
  const els = Array.from(document.querySelectorAll(selectors)).slice(0, limit);
  return els.map((el, i) => {
    const rect = el.getBoundingClientRect();
    const tag = el.tagName.toLowerCase();
    const id = el.id ? `#${el.id}` : "";
    const classes = typeof el.className === "string" && el.className.trim()
      ? "." + el.className.split(/\\s+/).filter(Boolean).join(".")
      : "";
    return {
      index: i,
      selector: id || `${tag}${classes}`,
      tag,
      text: (el.textContent || "").trim().slice(0, 80),
      rect: {
        x: Math.round(rect.x),
        y: Math.round(rect.y),
        width: Math.round(rect.width),
        height: Math.round(rect.height),
      },
      attributes: {
        type: el.getAttribute("type"),
        name: el.getAttribute("name"),
        placeholder: el.getAttribute("placeholder"),
        href: el.getAttribute("href"),
      },
    };
  });
}
"""


async def capture_page(pool: BrowserPool, url: str, max_elements: int = 200) -> dict[str, Any]:
    """Open *url* in a pooled session and describe what is clickable on it.

    The session counts against pool capacity for the duration of the
    capture; :class:`PoolExhaustedError` propagates to the caller.
    """
    capture_id = f"capture-{uuid.uuid4().hex}"
    session = await pool.acquire(capture_id)
    try:
        page = session.page
        await page.goto(url, wait_until="domcontentloaded", timeout=30_000)
        png = await page.screenshot(type="png")
        elements = await page.evaluate(
            _ELEMENTS_JS, {"selectors": INTERACTIVE_SELECTORS, "limit": max_elements}
        )
        logger.info("Captured %s: %d interactive elements", url, len(elements))
        return {
            "screenshot": base64.b64encode(png).decode("ascii"),
            "elements": elements,
            "url": page.url,
            "title": await page.title(),
        }
    finally:
        await pool.release(capture_id)
