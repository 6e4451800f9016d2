# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Utilities used by the library."""

import functools
import logging
import sys
import time
from typing import Callable, Type, TypeVar

import click
from typing_extensions import ParamSpec

from azure_vm_manager.errors import WaitTimeoutError

logger = logging.getLogger(__name__)


# Parameters of the function decorated with retry
ParamT = ParamSpec("ParamT")  # pylint: disable=invalid-name
# Return type of the function decorated with retry
ReturnT = TypeVar("ReturnT")


def retry(
    exception: Type[Exception] = Exception, tries: int = 1, delay: float = 0
) -> Callable[[Callable[ParamT, ReturnT]], Callable[ParamT, ReturnT]]:
    """Parameterize the decorator calling a function again while it raises.

    Args:
        exception: Exception type to be retried.
        tries: Number of calls before the error is raised.
        delay: Time in seconds to wait between two calls.

    Returns:
        The function decorator for retry.
    """

    def retry_decorator(
        func: Callable[ParamT, ReturnT],
    ) -> Callable[ParamT, ReturnT]:
        """Decorate function with retry.

        Args:
            func: The function to decorate.

        Returns:
            The resulting function with retry added.
        """

        @functools.wraps(func)
        def fn_with_retry(*args: ParamT.args, **kwargs: ParamT.kwargs) -> ReturnT:
            """Call the function until it succeeds or the tries are used up.

            Args:
                args: The positional arguments of the decorated function.
                kwargs: The keyword arguments of the decorated function.

            Returns:
                The result of the decorated function.
            """
            for attempt in range(1, tries):
                try:
                    return func(*args, **kwargs)
                except exception as err:
                    logger.debug("Attempt %s of %s failed, retrying: %s", attempt, tries, err)
                    time.sleep(delay)
            return func(*args, **kwargs)

        return fn_with_retry

    return retry_decorator


class _NotReadyError(Exception):
    """Represents a polled condition that does not hold yet."""


def wait_until(
    condition: Callable[[], bool], description: str, timeout: float, interval: float
) -> None:
    """Poll a condition until it holds.

    Args:
        condition: Callable returning True once the awaited state is reached.
        description: Human readable description of the awaited state, used in logs and errors.
        timeout: Maximum time in seconds to wait.
        interval: Time in seconds between two polls.

    Raises:
        WaitTimeoutError: If the condition does not hold before the timeout.
    """
    polls = timeout // interval if interval > 0 else timeout
    tries = max(int(polls), 1)

    @retry(exception=_NotReadyError, tries=tries, delay=interval)
    def _poll() -> None:
        """Check the condition once.

        Raises:
            _NotReadyError: If the condition does not hold yet.
        """
        if not condition():
            raise _NotReadyError(f"Waiting for {description}")

    logger.debug("Waiting up to %s seconds for %s", timeout, description)
    try:
        _poll()
    except _NotReadyError as exc:
        raise WaitTimeoutError(
            f"Timed out after {timeout} seconds waiting for {description}"
        ) from exc


def confirm_action(message: str, confirm: bool) -> bool:
    """Ask the user to confirm a destructive action.

    The question is only asked when confirmation is requested and stdin is a terminal.

    Args:
        message: The question shown to the user.
        confirm: Whether confirmation is requested at all.

    Returns:
        Whether the action should proceed.
    """
    if not confirm or not sys.stdin.isatty():
        return True
    return click.confirm(message, default=False)
