"""Browser actions — Playwright page operations on the execution's session."""

from __future__ import annotations

import base64
import logging
import os
from typing import Any

from playwright.async_api import Error as PlaywrightError

from rpaworker.registry.action_registry import (
    ActionConfigError,
    ActionOutcome,
    VariableWrite,
    require_config,
)

logger = logging.getLogger("rpaworker.actions.browser")

NAVIGATION_TIMEOUT_MS = 30_000
ELEMENT_TIMEOUT_MS = 10_000


async def navigate(session: Any, config: dict[str, Any]) -> ActionOutcome:
    require_config("navigate", config, "url")
    page = session.page
    await page.goto(config["url"], wait_until="domcontentloaded", timeout=NAVIGATION_TIMEOUT_MS)
    return ActionOutcome(output={"url": page.url, "title": await page.title()})


async def click(session: Any, config: dict[str, Any]) -> ActionOutcome:
    require_config("click", config, "selector")
    await session.page.locator(config["selector"]).first.click(timeout=ELEMENT_TIMEOUT_MS)
    return ActionOutcome(output={"clicked": True})


async def input_text(session: Any, config: dict[str, Any]) -> ActionOutcome:
    require_config("input", config, "selector")
    locator = session.page.locator(config["selector"]).first
    if config.get("clearFirst", True) is not False:
        await locator.clear(timeout=ELEMENT_TIMEOUT_MS)
    value = config.get("value")
    await locator.fill("" if value is None else str(value), timeout=ELEMENT_TIMEOUT_MS)
    return ActionOutcome(output={"filled": True})


async def extract(session: Any, config: dict[str, Any]) -> ActionOutcome:
    """Read text, inner HTML or an attribute from the first (or every) match.

    ``saveAs`` stores the extracted value under that variable name.
    """
    require_config("extract", config, "selector")
    attr = config.get("attribute") or "textContent"
    locator = session.page.locator(config["selector"])

    if config.get("multiple"):
        data: Any = []
        for i in range(await locator.count()):
            data.append(await _read_element(locator.nth(i), attr))
    else:
        data = await _read_element(locator.first, attr)

    save_as = config.get("saveAs")
    return ActionOutcome(
        output={"data": data},
        set_variable=VariableWrite(save_as, data) if save_as else None,
    )


async def _read_element(element: Any, attr: str) -> str:
    if attr == "textContent":
        return await element.text_content() or ""
    if attr == "innerHTML":
        return await element.inner_html()
    value = await element.get_attribute(attr)
    if value is None:
        value = await element.text_content()
    return value or ""


async def wait(session: Any, config: dict[str, Any]) -> ActionOutcome:
    page = session.page
    kind = config.get("type")
    value = config.get("value")
    if kind == "selector":
        if not value:
            raise ActionConfigError("wait", "value is required for type 'selector'")
        await page.wait_for_selector(str(value), timeout=NAVIGATION_TIMEOUT_MS)
    elif kind == "navigation":
        await page.wait_for_load_state("domcontentloaded")
    else:
        # "delay" and anything unrecognised: milliseconds, 1000 when unset or not numeric
        try:
            delay_ms = float(value) if kind == "delay" else 0
        except (TypeError, ValueError):
            delay_ms = 0
        await page.wait_for_timeout(delay_ms or 1000)
    return ActionOutcome(output={"waited": True})


async def screenshot(session: Any, config: dict[str, Any]) -> ActionOutcome:
    png = await session.page.screenshot(full_page=bool(config.get("fullPage", False)), type="png")
    encoded = base64.b64encode(png).decode("ascii")
    return ActionOutcome(output={"screenshot": encoded}, screenshot=encoded)


async def file_download(session: Any, config: dict[str, Any]) -> ActionOutcome:
    require_config("fileDownload", config, "url", "savePath")
    page = session.page
    save_path = str(config["savePath"])

    async with page.expect_download(timeout=NAVIGATION_TIMEOUT_MS) as download_info:
        try:
            await page.goto(config["url"])
        except PlaywrightError as exc:
            # Chromium aborts the navigation once the response becomes a download
            if "Download is starting" not in str(exc):
                raise
    download = await download_info.value

    directory = os.path.dirname(save_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    await download.save_as(save_path)
    size = os.path.getsize(save_path) if os.path.exists(save_path) else 0
    logger.debug("Downloaded %s -> %s (%d bytes)", config["url"], save_path, size)
    return ActionOutcome(output={"savedPath": save_path, "size": size})


async def login(session: Any, config: dict[str, Any]) -> ActionOutcome:
    require_config(
        "login", config,
        "url", "usernameSelector", "passwordSelector", "submitSelector",
    )
    page = session.page
    await page.goto(config["url"])
    await page.fill(config["usernameSelector"], str(config.get("username") or ""))
    await page.fill(config["passwordSelector"], str(config.get("password") or ""))
    await page.click(config["submitSelector"])

    if config.get("waitForSelector"):
        await page.wait_for_selector(config["waitForSelector"], timeout=ELEMENT_TIMEOUT_MS)
    else:
        await page.wait_for_load_state("networkidle")
    return ActionOutcome(output={"success": True, "currentUrl": page.url})
