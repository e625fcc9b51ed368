"""
Guardrails — input/output validation for the production chat.

Layers:
  1. Input validation (empty, length)
  2. Prompt-injection logging (never blocks)
  3. Output validation (response length)
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

# ── Configuration ─────────────────────────────────────────────────────

MAX_MESSAGE_LENGTH = 10000       # Max chat message length
MAX_RESPONSE_LENGTH = 50000      # Max model prose kept in a turn

INJECTION_PATTERNS = [
    r"ignore\s+(all\s+)?previous\s+instructions",
    r"ignore\s+(all\s+)?above",
    r"disregard\s+(all\s+)?previous",
    r"<\s*system\s*>",
]


@dataclass
class GuardrailResult:
    """Result of a guardrail check."""
    allowed: bool
    reason: Optional[str] = None
    modified_input: Optional[str] = None


# ── Input Guardrails ──────────────────────────────────────────────────

def check_input(message: str) -> GuardrailResult:
    """
    Validate a post-production chat message before it is sent.
    Returns GuardrailResult with allowed=False if blocked.
    """
    if not message.strip():
        return GuardrailResult(allowed=False, reason="Message is empty.")

    if len(message) > MAX_MESSAGE_LENGTH:
        return GuardrailResult(
            allowed=False,
            reason=f"Message too long ({len(message)} chars). Maximum is {MAX_MESSAGE_LENGTH}.",
        )

    msg_lower = message.lower()
    for pattern in INJECTION_PATTERNS:
        if re.search(pattern, msg_lower):
            # Logged only; the system instruction is the real defense.
            logger.warning("Potential injection in chat message: %s", message[:100])
            break

    return GuardrailResult(allowed=True)


# ── Output Guardrails ─────────────────────────────────────────────────

def check_output(response: str) -> GuardrailResult:
    """Validate model prose before it becomes a turn."""
    if len(response) > MAX_RESPONSE_LENGTH:
        return GuardrailResult(
            allowed=True,
            modified_input=response[:MAX_RESPONSE_LENGTH] + "\n\n[Response truncated due to length]",
        )
    return GuardrailResult(allowed=True)
