"""HTTP helpers shared by the CI providers: retries, proxy and log masking."""

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import TypeVar
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import aiohttp

from mobile_e2e.ci_tools.models.settings import RetryPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")

MASKED_QUERY_KEYS = ("appId", "workflowId", "token", "branch")

RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (
    RuntimeError,
    aiohttp.ClientError,
    asyncio.TimeoutError,
)


def obfuscate_token(token: str, limit: int) -> str:
    """Mask the middle of a token, keeping ``limit`` characters at each end.

    Tokens of 8 characters or fewer, and tokens too short to keep both ends
    visible, are masked entirely.
    """
    if len(token) <= 8 or len(token) <= 2 * limit:
        return "*" * len(token)

    start = token[:limit]
    end = token[-limit:] if limit else ""
    masked = "*" * (len(token) - len(start) - len(end))
    return f"{start}{masked}{end}"


def obfuscate_url(url: str, keys_to_mask: Iterable[str] = MASKED_QUERY_KEYS) -> str:
    """Mask sensitive query parameters of a URL for logging."""
    keys = set(keys_to_mask)
    parts = urlsplit(url)
    query = [
        (key, obfuscate_token(value, 3) if key in keys else value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(query, safe="*/")))


def get_proxy_url() -> str | None:
    """Return the HTTPS proxy configured in the environment, if any."""
    return os.environ.get("HTTPS_PROXY") or os.environ.get("https_proxy") or None


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 3,
    retry_delay: float = 3.0,
    description: str = "operation",
) -> T:
    """Run ``operation`` until it succeeds or ``max_retries`` attempts failed.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        max_retries: Maximum number of attempts
        retry_delay: Seconds to sleep between attempts
        description: Label used in log and error messages

    Returns:
        Result of the first successful attempt

    Raises:
        RuntimeError: If every attempt failed

    """
    last_error: BaseException | None = None

    for attempt in range(1, max_retries + 1):
        try:
            return await operation()
        except RETRYABLE_ERRORS as e:
            last_error = e
            logger.warning(f"Attempt {attempt} for {description} failed: {e}")

        if attempt < max_retries:
            logger.info(f"Retrying in {retry_delay} seconds...")
            await asyncio.sleep(retry_delay)

    raise RuntimeError(
        f"Failed to fetch data from {description} after {max_retries} attempts"
    ) from last_error


def _display_url(url: str, params: Mapping[str, str] | None) -> str:
    if params:
        separator = "&" if urlsplit(url).query else "?"
        url = f"{url}{separator}{urlencode(params)}"
    return obfuscate_url(url)


async def fetch_json(
    session: aiohttp.ClientSession,
    url: str,
    *,
    headers: Mapping[str, str] | None = None,
    params: Mapping[str, str] | None = None,
    retry: RetryPolicy | None = None,
    proxy: str | None = None,
) -> object:
    """GET a JSON document, retrying non-2xx responses and client errors."""
    policy = retry or RetryPolicy()
    display_url = _display_url(url, params)

    async def attempt() -> object:
        logger.info(f"Fetching URL: {display_url}")
        async with session.get(
            url, headers=headers, params=params, proxy=proxy
        ) as response:
            if not response.ok:
                text = await response.text()
                raise RuntimeError(f"Response error: {response.status} {text}")

            data: object = await response.json()

        logger.info(f"Successful response from {display_url}")
        return data

    return await with_retry(
        attempt,
        max_retries=policy.max_retries,
        retry_delay=policy.retry_delay,
        description=display_url,
    )
