"""Backoff for provider calls that hit rate limits."""

import logging

import structlog
from tenacity import (
    RetryCallState,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from observability import metrics

logger = structlog.stdlib.get_logger(__name__)

MAX_ATTEMPTS = 3
MIN_WAIT_SECONDS = 2.0
MAX_WAIT_SECONDS = 30.0

_log_before_sleep = before_sleep_log(logger, logging.WARNING)


def _before_sleep(state: RetryCallState):
    metrics.counter("llm.retries")
    _log_before_sleep(state)


def llm_retry(exceptions: tuple = (Exception,)):
    """Retry an LLM call up to three times, waiting 2-30s, then re-raise.

    The policy is fixed; callers only choose which errors are worth retrying.
    """
    return retry(
        stop=stop_after_attempt(MAX_ATTEMPTS),
        wait=wait_exponential(multiplier=1, min=MIN_WAIT_SECONDS, max=MAX_WAIT_SECONDS),
        retry=retry_if_exception_type(exceptions),
        before_sleep=_before_sleep,
        reraise=True,
    )
