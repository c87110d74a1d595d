"""Built-in primitive actions and the default registry wiring."""

from __future__ import annotations

from rpaworker.actions import browser, files, variables
from rpaworker.registry.action_registry import ActionHandler, ActionRegistry

BUILTIN_ACTIONS: dict[str, ActionHandler] = {
    "navigate": browser.navigate,
    "click": browser.click,
    "input": browser.input_text,
    "extract": browser.extract,
    "wait": browser.wait,
    "screenshot": browser.screenshot,
    "fileDownload": browser.file_download,
    "login": browser.login,
    "setVariable": variables.set_variable,
    "csvRead": files.csv_read,
    "csvWrite": files.csv_write,
    "excelRead": files.excel_read,
    "excelWrite": files.excel_write,
}


def build_default_registry() -> ActionRegistry:
    registry = ActionRegistry()
    for action_type, handler in BUILTIN_ACTIONS.items():
        registry.register(action_type, handler)
    return registry
