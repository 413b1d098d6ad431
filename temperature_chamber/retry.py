import logging
import traceback

import backoff


logger = logging.getLogger(__name__)


def _retry_handler(details):
    logger.info(
        f"Retrying after error. Call details: {details}. Traceback: {traceback.format_exc()}"
    )


def _short_read_handler(details):
    logger.debug(
        f"Condition not met after {details['tries']} tries (last value: {details['value']!r}), "
        f"waiting {details['wait']:0.2f}s"
    )


def retry_on_exception(expected_exception, **backoff_kwargs):
    """ When used as a decorator, when the wrapped function raises expected_exception, we'll retry
    We will retry at a constant interval, logging the traceback and call details of any errors that happen.

    By default we make 3 tries in quick succession; after the last try the error will be raised.

    Example usage:
    >>> @retry_on_exception(ExpectedError)
    >>> def thing_that_might_raise_expected_error(foo): ...

    Args:
        expected_exception: exception or tuple of exceptions to handle via retry
        **backoff_kwargs: Additional keyword arguments will be passed to `backoff.on_exception`.

    Returns:
        decorator which can be used to wrap a function
    """
    return backoff.on_exception(
        backoff.constant,  # Use a constant interval between retries rather than, say, an exponential backoff
        expected_exception,
        **{
            # The chamber controller is the only thing on its serial line, so there are no collisions to jitter away
            "jitter": None,
            "interval": 0,
            "max_tries": 3,
            "on_backoff": _retry_handler,
            **backoff_kwargs,
        },
    )


def retry_on_predicate(predicate, **backoff_kwargs):
    """ When used as a decorator, call the wrapped function again for as long as predicate(return value) is True

    Unlike retry_on_exception, running out of tries is not an error: the last return value is passed through and
    it's up to the caller to decide whether it's good enough.

    Example usage:
    >>> @retry_on_predicate(lambda response: len(response) < 7, max_tries=4, interval=0.2)
    >>> def read_some_more(): ...

    Args:
        predicate: function of the wrapped function's return value. Returning True means "try again"
        **backoff_kwargs: Additional keyword arguments will be passed to `backoff.on_predicate`.

    Returns:
        decorator which can be used to wrap a function
    """
    return backoff.on_predicate(
        backoff.constant,
        predicate,
        **{
            "jitter": None,
            "interval": 0,
            "max_tries": 3,
            "on_backoff": _short_read_handler,
            **backoff_kwargs,
        },
    )
