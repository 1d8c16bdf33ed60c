from __future__ import annotations

from botocore.exceptions import ClientError, ConnectTimeoutError, EndpointConnectionError, ReadTimeoutError
from loguru import logger
from tenacity import retry_if_exception, stop_after_attempt, wait_exponential

_RETRYABLE_ERROR_CODES = frozenset(
    {
        "ThrottlingException",
        "TooManyRequestsException",
        "ServiceUnavailableException",
        "ModelNotReadyException",
        "InternalServerException",
    }
)

_MAX_ATTEMPTS = 4


def is_retryable(ex: BaseException) -> bool:
    if isinstance(ex, (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError)):
        return True
    if isinstance(ex, ClientError):
        return ex.response.get("Error", {}).get("Code") in _RETRYABLE_ERROR_CODES
    return False


def _on_retry(retry_state) -> None:
    attempt = retry_state.attempt_number
    wait = retry_state.next_action.sleep if retry_state.next_action else 0
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    reason = type(exc).__name__ if exc else "Unknown"
    logger.warning(f"{reason}. Retrying in {wait:.0f}s (attempt {attempt}/{_MAX_ATTEMPTS})...")


def default_retry_kwargs() -> dict:
    """Retry policy for opening a stream. Frames already streamed are never replayed."""
    return {
        "retry": retry_if_exception(is_retryable),
        "wait": wait_exponential(multiplier=1, min=1, max=20),
        "stop": stop_after_attempt(_MAX_ATTEMPTS),
        "before_sleep": _on_retry,
        "reraise": True,
    }
