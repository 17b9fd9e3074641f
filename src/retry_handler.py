#!/usr/bin/env python3
"""
Retry Executor - wraps async operations with logged retries and backoff
"""

import asyncio
import socket
from typing import Any, Awaitable, Callable, Dict, Optional

import requests

from errors import FetchError
from logging_setup import setup_logger


MAX_BACKOFF_MS = 30000

RETRYABLE_CODES = ('ECONNREFUSED', 'ETIMEDOUT', 'ENOTFOUND', 'ECONNRESET')
RETRYABLE_STATUSES = (408, 429, 500, 502, 503, 504)

ERROR_HINTS = {
    'ECONNREFUSED': 'Connection refused. Check if the URL is accessible.',
    'ENOTFOUND': 'Domain not found. Check the URL.',
    'ETIMEDOUT': 'Request timed out. Try increasing the timeout value.',
    'ECONNRESET': 'Connection reset by the remote host.'
}


def calculate_backoff(attempt: int, strategy: str, initial_delay: int) -> int:
    """
    Delay in milliseconds before the attempt following ``attempt``

    exponential: initial * 2^(attempt-1), capped at 30s
    linear:      initial * attempt
    anything else is a fixed delay
    """
    if strategy == 'exponential':
        return min(initial_delay * 2 ** (attempt - 1), MAX_BACKOFF_MS)
    if strategy == 'linear':
        return initial_delay * attempt
    return initial_delay


def _error_code(error: BaseException) -> Optional[str]:
    if isinstance(error, FetchError):
        return error.code
    if isinstance(error, (requests.exceptions.Timeout, asyncio.TimeoutError, socket.timeout)):
        return 'ETIMEDOUT'
    if isinstance(error, socket.gaierror):
        return 'ENOTFOUND'
    if isinstance(error, ConnectionRefusedError):
        return 'ECONNREFUSED'
    if isinstance(error, ConnectionResetError):
        return 'ECONNRESET'
    return None


def _status_code(error: BaseException) -> Optional[int]:
    if isinstance(error, FetchError):
        return error.status_code
    response = getattr(error, 'response', None)
    return getattr(response, 'status_code', None)


def is_retryable_error(error: BaseException) -> bool:
    """Transient network failures and throttling/server-side HTTP statuses are worth retrying"""
    return _error_code(error) in RETRYABLE_CODES or _status_code(error) in RETRYABLE_STATUSES


class RetryExecutor:
    """Runs an async operation up to max_attempts times with backoff between attempts"""

    def __init__(self, config=None, sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep, debug_mode: bool = True):
        self.config = config
        self._sleep = sleep
        self.logger = setup_logger('RetryExecutor', debug_mode)

    def _setting(self, key: str, default: Any) -> Any:
        if self.config is None:
            return default
        return self.config.get(key, default)

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[Any]],
        context: str = 'operation',
        max_attempts: Optional[int] = None,
        backoff: Optional[str] = None,
        initial_delay: Optional[int] = None,
        retry_on: Optional[Callable[[BaseException], bool]] = None
    ) -> Any:
        """
        Execute an operation with retry

        Args:
            operation: Zero-argument coroutine function
            context: Label used in log messages
            max_attempts: Total attempts, defaults to retry.maxAttempts
            backoff: 'exponential', 'linear' or 'fixed', defaults to retry.backoff
            initial_delay: Base delay in ms, defaults to retry.initialDelay
            retry_on: Optional predicate; errors it rejects are raised immediately

        Returns:
            The operation's result

        Raises:
            The error from the last attempt
        """
        max_attempts = max_attempts or self._setting('retry.maxAttempts', 3)
        backoff = backoff or self._setting('retry.backoff', 'exponential')
        initial_delay = initial_delay if initial_delay is not None else self._setting('retry.initialDelay', 1000)

        for attempt in range(1, max_attempts + 1):
            try:
                return await operation()
            except Exception as e:
                if attempt == max_attempts:
                    self.logger.error(f" {context} failed after {max_attempts} attempts: {e}", exc_info=True)
                    raise

                if retry_on is not None and not retry_on(e):
                    self.logger.error(f" {context} failed with a non-retryable error: {e}", exc_info=True)
                    raise

                delay = calculate_backoff(attempt, backoff, initial_delay)
                self.logger.warning(f"⚠ {context} failed (attempt {attempt}/{max_attempts}), retrying in {delay}ms: {e}")
                await self._sleep(delay / 1000)

    def handle_error(self, error: BaseException, context: str = 'Unknown') -> Dict[str, Any]:
        """Log an error with a hint for common connection failures and return a failure record"""
        self.logger.error(f" Error in {context}: {type(error).__name__}: {error}", exc_info=error)

        hint = ERROR_HINTS.get(_error_code(error))
        if hint:
            self.logger.error(f" {hint}")

        return {
            'success': False,
            'error': str(error),
            'context': context
        }
