# uisync/selector.py
"""
@file selector.py
@brief Bounded random pick of an enabled option.

The search samples uniformly with replacement and gives up after
MAX_TRIES picks, so a set with few enabled options can fail even though
one exists. Callers needing an exhaustive scan should filter the options
themselves.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, Sequence, TypeVar

from .exceptions import NoEnabledOptionError

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_TRIES = 5


@dataclass(frozen=True)
class Selection(Generic[T]):
    index: int
    option: T
    attempts: int


def _default_is_enabled(option: Any) -> bool:
    return bool(option.is_enabled())


def select_random_enabled(
    options: Sequence[T],
    max_tries: int = MAX_TRIES,
    rng: Optional[random.Random] = None,
    is_enabled: Optional[Callable[[T], bool]] = None,
) -> Selection[T]:
    """
    Pick a random enabled option in at most ``max_tries`` samples.

    @param options Already resolved options, e.g. the <option> elements of a <select>
    @param max_tries Number of samples before giving up
    @param rng Random source; a fresh ``random.Random()`` when omitted
    @param is_enabled Enabled check; ``option.is_enabled()`` by default
    @return The chosen index and option
    @throws NoEnabledOptionError if every sample landed on a disabled option
    """
    rng = rng or random.Random()
    is_enabled = is_enabled or _default_is_enabled
    count = len(options)

    if count == 0:
        raise NoEnabledOptionError("No options to select from", attempts=0, option_count=0)

    for attempt in range(1, max_tries + 1):
        index = rng.randrange(count)
        option = options[index]
        if is_enabled(option):
            logger.debug("Selected option %d on attempt %d", index, attempt)
            return Selection(index=index, option=option, attempts=attempt)
        logger.warning(
            "Option %d is disabled, retrying selection (attempt %d/%d)",
            index, attempt, max_tries,
        )

    logger.error("No enabled option found in %d attempts over %d options", max_tries, count)
    raise NoEnabledOptionError(
        f"No enabled option found after {max_tries} attempts over {count} options",
        attempts=max_tries,
        option_count=count,
    )
