"""
Sanitized, size-bounded accessibility snapshots of the current page.
"""

import asyncio
from typing import Optional

from playwright.async_api import Page

from autonomate.config.settings import Settings, get_settings
from autonomate.core.cancellation import CancellationToken, check_cancelled
from autonomate.monitoring.logger import get_logger
from autonomate.security.sanitizer import redact_pii

TRUNCATION_MARKER = "\n\n... (snapshot truncated to reduce token usage)"
FINAL_TRUNCATION_MARKER = "\n\n... (truncated)"
DOM_HINTS_HEADER = (
    "\n\n[DOM identifiers present on page – use for verification when Aria has no name]\n"
)

HINT_KEYWORDS = (
    "cart", "minicart", "menu", "nav", "header", "footer", "basket", "bag",
    "login", "user", "product", "order", "supplier", "company", "language",
    "locale", "search", "account", "logo", "brand",
)

# Collects element ids and keyword-matching class names so elements without an
# accessible name can still be verified.
DOM_HINTS_SCRIPT = """
(keywords) => {
    const ids = new Set();
    const classes = new Set();
    document.querySelectorAll('[id]').forEach(el => {
        if (el.id && el.id.length < 80) ids.add(el.id);
    });
    document.querySelectorAll('[class]').forEach(el => {
        const c = (el.className && typeof el.className === 'string') ? el.className : '';
        c.split(/\\s+/).filter(Boolean).forEach(cls => {
            const lower = cls.toLowerCase();
            if (cls.length < 80 && keywords.some(k => lower.includes(k))) classes.add(cls);
        });
    });
    const idList = Array.from(ids).slice(0, 100).sort();
    const classList = Array.from(classes).slice(0, 100).sort();
    return 'ids: ' + idList.join(', ') + '\\nclasses: ' + classList.join(', ');
}
"""


class SnapshotProvider:
    """
    Captures the page's accessibility tree for the decision oracle.

    The order of processing is fixed: PII redaction, truncation to the budget
    minus the hint reserve, DOM hint append, and a final truncation so the
    result never exceeds the budget.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        self.max_length = settings.max_snapshot_length
        self.max_length_verify = settings.max_snapshot_length_verify
        self.hint_reserve = settings.snapshot_hint_reserve
        self.redaction_timeout = settings.redaction_timeout_seconds
        self.logger = get_logger("browser.snapshot")

    def budget_for(self, for_verification: bool) -> int:
        """Return the character budget for an action or verification snapshot."""
        budget = self.max_length
        if (
            for_verification
            and self.max_length_verify > 0
            and (budget == 0 or self.max_length_verify < budget)
        ):
            budget = self.max_length_verify
        return budget

    async def capture(
        self,
        page: Page,
        for_verification: bool = False,
        cancel_token: Optional[CancellationToken] = None,
    ) -> str:
        """
        Capture a sanitized snapshot of the page body.

        Args:
            page: Page to read
            for_verification: Use the verification budget
            cancel_token: Checked before each page query

        Returns:
            Snapshot text no longer than the selected budget
        """
        check_cancelled(cancel_token)
        snapshot = await page.locator("body").aria_snapshot()

        snapshot = await self.redact(snapshot)
        budget = self.budget_for(for_verification)
        snapshot = self.truncate(snapshot, budget)

        check_cancelled(cancel_token)
        hints = await self.collect_dom_hints(page)
        if hints:
            snapshot += DOM_HINTS_HEADER + hints

        return self.enforce_budget(snapshot, budget)

    async def redact(self, snapshot: str) -> str:
        """Redact PII on a worker thread, bounded by the redaction timeout."""
        if not snapshot:
            return snapshot
        return await asyncio.wait_for(
            asyncio.to_thread(redact_pii, snapshot),
            timeout=self.redaction_timeout,
        )

    def truncate(self, snapshot: str, budget: int) -> str:
        """Cut to ``budget - hint_reserve`` and append the truncation marker."""
        if budget <= 0:
            return snapshot

        limit = max(budget - self.hint_reserve, 0)
        if len(snapshot) <= limit:
            return snapshot

        original_length = len(snapshot)
        self.logger.info(
            f"Aria snapshot truncated from {original_length} to {limit} chars "
            f"(saves ~{(original_length - limit) // 4} tokens/step)"
        )
        return snapshot[:limit] + TRUNCATION_MARKER

    @staticmethod
    def enforce_budget(snapshot: str, budget: int) -> str:
        """Final cut so the snapshot including its marker fits ``budget``."""
        if budget <= 0 or len(snapshot) <= budget:
            return snapshot
        keep = max(budget - len(FINAL_TRUNCATION_MARKER), 0)
        return (snapshot[:keep] + FINAL_TRUNCATION_MARKER)[:budget]

    async def collect_dom_hints(self, page: Page) -> Optional[str]:
        """Return id/class hints, or None when collection fails."""
        try:
            result = await page.evaluate(DOM_HINTS_SCRIPT, list(HINT_KEYWORDS))
        except Exception as e:
            self.logger.debug(f"DOM hint collection failed: {e}")
            return None
        if not isinstance(result, str) or not result.strip():
            return None
        return result
