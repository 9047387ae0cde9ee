"""
Per-run audit trail of model decisions.
"""

from datetime import datetime
from typing import Callable, List, Optional

from autonomate.core.types import ActionDecision


class ReasoningLog:
    """
    Ordered, timestamped buffer of decision rationale for one run.

    Entries are kept in memory and written to the run record once, when the
    run is finalized. When a ``mask`` is given (normally the run's
    ``SecretStore.mask_literals``), every entry passes through it, so secret
    values echoed by the model or by exception text never reach the record.
    """

    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
        mask: Optional[Callable[[str], Optional[str]]] = None,
    ) -> None:
        self._clock = clock or datetime.now
        self._mask = mask
        self._entries: List[str] = []

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> List[str]:
        return list(self._entries)

    def append(self, message: str) -> None:
        """Append one entry prefixed with the local wall-clock time."""
        if self._mask is not None:
            message = self._mask(message) or ""
        self._entries.append(f"{self._clock():%H:%M:%S}: {message}")

    def action(self, step: str, decision: ActionDecision) -> None:
        self.append(
            f"[Action] Step: '{step}' - AI Reasoning: {decision.reasoning} - "
            f"Executing: {decision.raw_action or decision.action_kind.value} on {decision.selector_value}"
        )

    def verification_passed(self, step: str, attempt: int, reasoning: str) -> None:
        self.append(
            f"[Verify] Step: '{step}' - Result: True (Attempt {attempt}) - AI Reasoning: {reasoning}"
        )

    def verification_failed(self, step: str, attempts: int, reasoning: str) -> None:
        self.append(
            f"[Verify] Step: '{step}' - Result: False (Failed after {attempts} attempts) - "
            f"AI Reasoning: {reasoning}"
        )

    def error(self, message: str) -> None:
        self.append(f"[Error] {message}")

    def cancelled(self, message: str) -> None:
        self.append(f"[Cancelled] {message}")

    def flush(self) -> Optional[str]:
        """
        Return the buffered text and empty the buffer.

        Returns:
            Newline-terminated entries, or None when nothing was logged
        """
        if not self._entries:
            return None
        text = "".join(f"{entry}\n" for entry in self._entries)
        self._entries.clear()
        return text
