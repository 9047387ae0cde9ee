"""
Tests for locator resolution.
"""

from unittest.mock import MagicMock

import pytest

from autonomate.browser.locator import LocatorResolver
from autonomate.core.types import ActionDecision


def _decision(selector_kind, selector_value, action="click"):
    return ActionDecision.from_wire(
        {"ActionKind": action, "SelectorKind": selector_kind, "SelectorValue": selector_value}
    )


@pytest.fixture
def page():
    return MagicMock()


class TestLocatorResolver:
    """Selector kind to locator strategy."""

    def test_button_role_exact(self, page):
        LocatorResolver().resolve(page, _decision("button", "Sign In"))
        page.get_by_role.assert_called_once_with("button", name="Sign In", exact=True)

    def test_role_case_insensitive(self, page):
        LocatorResolver().resolve(page, _decision("Button", "Sign In"))
        page.get_by_role.assert_called_once_with("button", name="Sign In", exact=True)

    def test_link_role_substring(self, page):
        LocatorResolver().resolve(page, _decision("link", "Cart"))
        page.get_by_role.assert_called_once_with("link", name="Cart", exact=False)

    def test_menuitem_role_substring(self, page):
        LocatorResolver().resolve(page, _decision("menuitem", "Orders"))
        page.get_by_role.assert_called_once_with("menuitem", name="Orders", exact=False)

    def test_text(self, page):
        LocatorResolver().resolve(page, _decision("text", "Welcome"))
        page.get_by_text.assert_called_once_with("Welcome")

    def test_label(self, page):
        LocatorResolver().resolve(page, _decision("label", "Email"))
        page.get_by_label.assert_called_once_with("Email")

    def test_placeholder_exact(self, page):
        LocatorResolver().resolve(page, _decision("placeholder", "Search"))
        page.get_by_placeholder.assert_called_once_with("Search", exact=True)

    def test_css(self, page):
        LocatorResolver().resolve(page, _decision("css", "#submit"))
        page.locator.assert_called_once_with("#submit")

    def test_unknown_kind_is_raw_css(self, page):
        LocatorResolver().resolve(page, _decision("xpath-ish", "div.main > a"))
        page.locator.assert_called_once_with("div.main > a")

    def test_describe(self):
        assert LocatorResolver.describe(_decision("button", "Go")) == "button 'Go'"
        assert LocatorResolver.describe(_decision("css", "#x")) == "css '#x'"
