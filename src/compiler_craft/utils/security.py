"""Secret redaction for log output.

Source code pasted by users is sent to the model untouched; only log
events pass through the redactor, so API keys from configuration or
provider error messages never reach the log stream.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Sequence

log = structlog.get_logger()

# (regex, label) pairs for credentials this service handles or may echo
CREDENTIAL_PATTERNS: tuple[tuple[str, str], ...] = (
    (
        r"(?i)(api[_-]?key|secret|token|password|credential)\s*[=:]\s*[\"']?[\w-]{16,}",
        "Generic secret",
    ),
    (r"sk-ant-[\w-]{40,}", "Anthropic API key"),
    (r"sk-[a-zA-Z0-9]{48}", "OpenAI legacy API key"),
    (r"sk-proj-[a-zA-Z0-9]{20,}", "OpenAI project API key"),
    (r"AIza[0-9A-Za-z\-_]{35}", "Google API key"),
    (r"ya29\.[0-9A-Za-z\-_]+", "Google OAuth access token"),
    (r"-----BEGIN (?:RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----", "Private key header"),
)


class RedactionError(Exception):
    """A pattern could not be compiled or applied."""


class SecretRedactor:
    """Replaces credential-looking substrings with a placeholder.

    Fails closed: a pattern that does not compile, or a substitution that
    errors, raises RedactionError instead of returning unredacted text.

    Usage:
        redactor = SecretRedactor()
        safe_text = redactor.redact(provider_error_message)
    """

    DEFAULT_PATTERNS = CREDENTIAL_PATTERNS

    def __init__(
        self,
        placeholder: str = "[REDACTED]",
        custom_patterns: Sequence[tuple[str, str]] | None = None,
    ) -> None:
        """Compile the default patterns plus any extras.

        Args:
            placeholder: Replacement text for each match.
            custom_patterns: Extra (regex, label) pairs.

        Raises:
            RedactionError: If a pattern does not compile.
        """
        self.placeholder = placeholder
        self._compiled: list[tuple[re.Pattern[str], str]] = []

        for source, label in (*self.DEFAULT_PATTERNS, *(custom_patterns or ())):
            try:
                self._compiled.append((re.compile(source), label))
            except re.error as e:
                log.error("pattern_compilation_failed", label=label, error=str(e))
                raise RedactionError(f"Failed to compile secret pattern '{source}': {e}") from e

    @property
    def patterns(self) -> list[re.Pattern[str]]:
        """Compiled patterns, defaults first."""
        return [pattern for pattern, _ in self._compiled]

    def redact(self, text: str) -> str:
        """Return ``text`` with every match replaced by the placeholder.

        Raises:
            RedactionError: If a substitution fails.
        """
        if not text:
            return text

        try:
            for pattern, _ in self._compiled:
                text = pattern.sub(self.placeholder, text)
        except Exception as e:
            raise RedactionError(f"Redaction failed: {e}") from e
        return text

    def has_secrets(self, text: str) -> bool:
        """True if any pattern matches ``text``."""
        return bool(text) and any(pattern.search(text) for pattern, _ in self._compiled)
