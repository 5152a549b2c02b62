import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import requests

from .constants import (
    DISCORD_RETRY_BACKOFF_SECONDS,
    DISCORD_RETRY_MAX_BACKOFF_SECONDS,
    DISCORD_SEND_ATTEMPTS,
    DISCORD_TIMEOUT_SECONDS,
)
from .utils import mask_webhook_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryResult:
    delivered: bool
    status_code: Optional[int] = None
    attempts: int = 0
    reason: Optional[str] = None
    skipped: bool = False


@dataclass(frozen=True)
class RetryPolicy:
    """
    Backoff exponencial limitado. max_attempts conta a primeira tentativa,
    então max_attempts=1 significa um único POST sem retry.
    """
    max_attempts: int = 1
    backoff_seconds: float = 1.0
    max_backoff_seconds: float = 30.0

    @classmethod
    def from_env(cls):
        return cls(
            max_attempts=DISCORD_SEND_ATTEMPTS,
            backoff_seconds=DISCORD_RETRY_BACKOFF_SECONDS,
            max_backoff_seconds=DISCORD_RETRY_MAX_BACKOFF_SECONDS,
        )

    def is_retryable_status(self, status_code: int) -> bool:
        return status_code == 429 or status_code >= 500

    def is_retryable_exception(self, exc: Exception) -> bool:
        # URL malformada (InvalidURL, MissingSchema...) nunca vai funcionar; só falhas de rede
        return isinstance(exc, (requests.ConnectionError, requests.Timeout))

    def delay_for(self, attempt: int, retry_after: Optional[float] = None) -> float:
        if retry_after is not None:
            return min(max(retry_after, 0.0), self.max_backoff_seconds)
        return min(self.backoff_seconds * (2 ** (attempt - 1)), self.max_backoff_seconds)


def _retry_after_seconds(resp) -> Optional[float]:
    if resp.status_code != 429:
        return None
    value = resp.headers.get('Retry-After')
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def send_discord_payload(
    webhook_url: Optional[str],
    payload: dict,
    retry_policy: Optional[RetryPolicy] = None,
    request_id: Optional[str] = None,
    timeout: Optional[float] = DISCORD_TIMEOUT_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> DeliveryResult:
    """
    Envia a mensagem para o webhook do Discord. Nunca levanta exceção:
    falhas são logadas e devolvidas como DeliveryResult.
    """
    tag = f"[req={request_id}] " if request_id else ""
    if not webhook_url:
        logger.error(f"{tag}No webhook URL found for the specified project.")
        return DeliveryResult(delivered=False, reason='no_webhook_url', skipped=True)

    policy = retry_policy or RetryPolicy()
    target = mask_webhook_url(webhook_url)
    attempt = 0
    while True:
        attempt += 1
        retry_after = None
        try:
            resp = requests.post(webhook_url, json=payload, timeout=timeout)
        except requests.RequestException as exc:
            reason = f"exception:{type(exc).__name__}"
            retryable = policy.is_retryable_exception(exc)
            logger.error(f"{tag}Error sending to Discord ({target}, tentativa {attempt}/{policy.max_attempts}): {exc}")
            status_code = None
        else:
            status_code = resp.status_code
            if resp.ok:
                logger.debug(f"{tag}Discord response: {status_code} (tentativa {attempt})")
                return DeliveryResult(delivered=True, status_code=status_code, attempts=attempt)
            reason = f"http_{status_code}"
            retryable = policy.is_retryable_status(status_code)
            retry_after = _retry_after_seconds(resp)
            logger.error(
                f"{tag}Error sending to Discord ({target}, tentativa {attempt}/{policy.max_attempts}): "
                f"HTTP {status_code} {resp.text[:200]}"
            )

        if not retryable or attempt >= policy.max_attempts:
            return DeliveryResult(delivered=False, status_code=status_code, attempts=attempt, reason=reason)

        delay = policy.delay_for(attempt, retry_after)
        logger.info(f"{tag}Nova tentativa em {delay:.1f}s")
        sleep(delay)
