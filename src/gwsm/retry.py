import logging
import random
import time
from dataclasses import dataclass, field
from typing import Callable, TypeVar

from googleapiclient.errors import HttpError

from .errors import GSMAPIError
from .settings import Settings, settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Google reports quota and rate exhaustion as 403 with varying phrasing.
# Retrying every 403 would also retry permission failures.
_RETRY_KEYWORDS = ("quota", "Quota", "limit", "Limit", "rate", "Rate")

def http_status(err: BaseException) -> int|None:
    if not isinstance(err, HttpError):
        return None
    try:
        return int(err.resp.status)
    except (AttributeError, TypeError, ValueError):
        return None

def is_retryable(err: BaseException) -> bool:
    """
    True if the error is an upstream API error that indicates a transient
    quota / rate / limit condition or carries one of the extra status codes
    in settings.retry_on.
    Anything that is not an HttpError (network errors etc) is never retryable.
    """
    status = http_status(err)
    if status is None:
        return False
    if status == 403:
        message = str(getattr(err, "reason", "") or "")
        return any(k in message for k in _RETRY_KEYWORDS)
    return status in settings.retry_on

def is_forbidden(err: BaseException) -> bool:
    """Any 403, used by the Drive migration which tolerates longer backoff"""
    return http_status(err) == 403

@dataclass(frozen=True)
class RetryPolicy():
    """
    Exponential backoff schedule.
    retries is the number of re-invocations after the first call, so a call
    runs at most retries + 1 times.  Delay n (0 based) is base * 2**n seconds,
    capped at cap when given, stretched by up to jitter (a fraction) at random.
    """
    retries: int = field(default=4)
    base: float = field(default=20.0)
    cap: float|None = field(default=None)
    jitter: float = field(default=0.0)
    classify: Callable[[BaseException], bool] = field(default=is_retryable)

    def backoff(self, n: int) -> float:
        delay = self.base * (2 ** n)
        if self.jitter:
            delay += delay * random.uniform(0, self.jitter)
        if self.cap is not None:
            delay = min(delay, self.cap)
        return delay

STANDARD_POLICY = RetryPolicy()
# 10 tries, 250ms doubling up to a minute
MIGRATION_POLICY = RetryPolicy(retries=9, base=0.25, cap=60.0, jitter=0.5, classify=is_forbidden)

def pace(config: Settings|None = None) -> None:
    """
    Sleep for the standard delay plus a random jitter (both milliseconds).
    Applied after every API call so concurrent workers don't burst in lockstep.
    """
    s = config if config is not None else settings
    lo, hi = s.jitter
    ms = s.standard_delay + random.randint(lo, hi)
    time.sleep(ms / 1000.0)

def run_value(err_key: str, fn: Callable[[], T], policy: RetryPolicy|None = None) -> T:
    """
    Call fn and return its value, retrying transient errors per policy
    (the standard 4 x 20s exponential schedule by default).
    Raises GSMAPIError prefixed with err_key on a terminal error or once the
    retries are used up.
    """
    p = policy if policy is not None else STANDARD_POLICY
    attempt = 0
    while True:
        try:
            result = fn()
        except Exception as e:
            pace()
            if attempt < p.retries and p.classify(e):
                logger.warning("%s: %s - Retrying...", err_key, e)
                time.sleep(p.backoff(attempt))
                attempt += 1
                continue
            raise GSMAPIError(err_key, e) from e
        pace()
        return result

def run_action(err_key: str, fn: Callable[[], object], policy: RetryPolicy|None = None) -> bool:
    """
    Same as run_value for calls that return nothing useful (deletes etc).
    True when the final attempt succeeded.
    """
    run_value(err_key, fn, policy)
    return True

def execute(err_key: str, request, policy: RetryPolicy|None = None):
    """Run a googleapiclient HttpRequest through the retrier"""
    return run_value(err_key, request.execute, policy)
