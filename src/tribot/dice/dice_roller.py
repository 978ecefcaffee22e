"""
Dice-notation evaluator.

An expression is a sum of signed terms separated by ``+`` and ``-``. Each term
is either an integer constant or ``[count]d<sides>``::

    2d6        two six-sided dice
    1d20-1     one d20 and the constant -1
    d8+2d4+3   count defaults to 1

The result is the list of individual values (dice and constants, each with its
term's sign), not their sum. At most :data:`MAX_DICE` dice may be rolled per
expression.
"""

from __future__ import annotations

import random
import re
from typing import List

MAX_DICE = 2048
MAX_INT = 2**63 - 1

_UNSIGNED_INT = re.compile(r"[0-9]+")


class DiceError(Exception):
    """Base class for dice evaluation failures."""


class DiceParseError(DiceError):
    """The expression is not valid dice notation."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class DiceLimitError(DiceError):
    """The expression asks for more than :data:`MAX_DICE` dice."""

    def __init__(self) -> None:
        super().__init__("too many dice")


def _parse_int(text: str) -> int:
    if not _UNSIGNED_INT.fullmatch(text):
        raise DiceParseError("could not parse integer")
    try:
        value = int(text)
    except ValueError:
        raise DiceParseError("could not parse integer") from None
    if value > MAX_INT:
        raise DiceParseError("could not parse integer")
    return value


def _split_terms(expression: str) -> List[str]:
    compact = "".join(expression.split())
    return compact.replace("-", "+-").split("+")


def roll_dice(expression: str, sort: bool = True, rng: random.Random | None = None) -> List[int]:
    """Evaluate ``expression`` and return every rolled value and constant.

    Args:
        expression: Dice notation; whitespace is ignored.
        sort: Sort the result ascending before returning it.
        rng: Random source; defaults to the module-level generator.

    Returns:
        The values in term order (or sorted). An empty expression yields an
        empty list.

    Raises:
        DiceParseError: Malformed integer (or one above
            :data:`MAX_INT`), non-positive side count, or a term
            with more than one ``d``.
        DiceLimitError: More than :data:`MAX_DICE` dice in total.
    """
    rng = rng or random
    rolls: List[int] = []
    dice_rolled = 0

    for term in _split_terms(expression):
        if not term:
            continue
        sign = 1
        if term.startswith("-"):
            term, sign = term[1:], -1

        parts = term.split("d")
        if len(parts) == 1:
            rolls.append(sign * _parse_int(parts[0]))
        elif len(parts) == 2:
            count = 1 if parts[0] == "" else _parse_int(parts[0])
            if dice_rolled + count > MAX_DICE:
                raise DiceLimitError()
            sides = _parse_int(parts[1])
            if sides <= 0:
                raise DiceParseError("dice must have at least one side")
            rolls.extend(sign * rng.randint(1, sides) for _ in range(count))
            dice_rolled += count
        else:
            raise DiceParseError("invalid dice notation")

    if sort:
        rolls.sort()
    return rolls
