"""Answer resolution: map a free-text reply onto one of a node's options.

Strategies run in a fixed priority order. The first strategy that yields
any candidate wins, and among its candidates the first in declared order
is selected, so resolution never depends on anything but the reply and
the option list.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from convoflow.core.errors import ResolutionFailure
from convoflow.core.graph import OptionItem
from convoflow.du import vocabulary

logger = logging.getLogger(__name__)

Strategy = Callable[[str, Sequence[OptionItem]], list[int]]


@dataclass(frozen=True)
class Resolution:
    """Outcome of a successful resolution."""

    index: int
    option: OptionItem
    strategy: str


def _normalize(text: str) -> str:
    return " ".join(text.casefold().split())


def _exact(reply: str, options: Sequence[OptionItem]) -> list[int]:
    target = _normalize(reply)
    return [
        i
        for i, option in enumerate(options)
        if target in (_normalize(option.label), _normalize(option.value))
    ]


def _numeric(reply: str, options: Sequence[OptionItem]) -> list[int]:
    candidate = reply.strip().rstrip(".)")
    # isdigit() also accepts superscripts that int() rejects
    if not candidate.isdecimal():
        return []
    try:
        position = int(candidate)
    except ValueError:
        return []
    if 1 <= position <= len(options):
        return [position - 1]
    return []


def _affirmative_negative(reply: str, options: Sequence[OptionItem]) -> list[int]:
    affirmative = vocabulary.is_affirmative(reply)
    negative = vocabulary.is_negative(reply)
    if affirmative == negative:
        # Neither, or ambiguous ("si, no")
        return []
    return [0] if affirmative else [1]


def _substring(reply: str, options: Sequence[OptionItem]) -> list[int]:
    target = _normalize(reply)
    if not target:
        return []
    matches: list[int] = []
    for i, option in enumerate(options):
        for text in (_normalize(option.label), _normalize(option.value)):
            if text and (target in text or text in target):
                matches.append(i)
                break
    return matches


class AnswerResolver:
    """Resolve replies against ordered option lists."""

    def resolve(
        self,
        reply: str,
        options: Sequence[OptionItem],
        two_way_condition: bool = False,
    ) -> Resolution:
        """Select the option a reply refers to.

        Args:
            reply: Raw user message
            options: Options in declared order
            two_way_condition: Enables the affirmative/negative vocabulary
                (Condition nodes with exactly two branches)

        Returns:
            The selected option and the strategy that found it

        Raises:
            ResolutionFailure: No strategy produced a candidate
        """
        strategies: list[tuple[str, Strategy]] = [("exact", _exact), ("numeric", _numeric)]
        if two_way_condition and len(options) == 2:
            strategies.append(("affirmative_negative", _affirmative_negative))
        strategies.append(("substring", _substring))

        for name, strategy in strategies:
            candidates = strategy(reply, options)
            if not candidates:
                continue
            if len(candidates) > 1:
                logger.debug(
                    f"Strategy '{name}' matched {len(candidates)} options, taking the first"
                )
            index = candidates[0]
            return Resolution(index=index, option=options[index], strategy=name)

        raise ResolutionFailure(
            "Reply does not match any option", reply=reply, options=len(options)
        )
