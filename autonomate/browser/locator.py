"""
Translation of action decisions into Playwright locators.
"""

from playwright.async_api import Locator, Page

from autonomate.core.types import SUBSTRING_NAME_ROLES, ActionDecision, SelectorKind


class LocatorResolver:
    """
    Maps a decision's selector kind and value onto a locator strategy.

    Role locators are preferred, then visible text, label and placeholder;
    anything else is used as a raw CSS selector. Link and menu item names are
    matched as substrings because they often carry counts or badges.
    """

    def resolve(self, page: Page, decision: ActionDecision) -> Locator:
        kind = decision.selector_kind
        value = decision.selector_value

        if kind == SelectorKind.ROLE and decision.role:
            return page.get_by_role(
                decision.role,
                name=value,
                exact=decision.role not in SUBSTRING_NAME_ROLES,
            )
        if kind == SelectorKind.TEXT:
            return page.get_by_text(value)
        if kind == SelectorKind.LABEL:
            return page.get_by_label(value)
        if kind == SelectorKind.PLACEHOLDER:
            return page.get_by_placeholder(value, exact=True)
        return page.locator(value)

    @staticmethod
    def describe(decision: ActionDecision) -> str:
        """Human-readable target, e.g. ``button 'Sign In'``."""
        if decision.selector_kind == SelectorKind.ROLE and decision.role:
            return f"{decision.role} '{decision.selector_value}'"
        return f"{decision.selector_kind.value} '{decision.selector_value}'"
