from __future__ import annotations

import random
from typing import Tuple

MAX_COINS = 2048

EIGHT_BALL_ANSWERS: Tuple[str, ...] = (
    "It is certain.", "It is decidedly so.", "Without a doubt.",
    "Yes - definitely.", "You may rely on it.", "As I see it, yes.",
    "Most likely.", "Outlook good.", "Yes.", "Signs point to yes.",

    "Reply hazy, try again.", "Ask again later.", "Better not tell you now.",
    "Cannot predict now.", "Concentrate and ask again.",

    "Don't count on it.", "My reply is no.", "My sources say no.",
    "Outlook not so good.", "Very doubtful.",
)


class CoinLimitError(Exception):
    """More than :data:`MAX_COINS` coins were requested."""

    def __init__(self) -> None:
        super().__init__("too many coins")


def flip_coin(rng: random.Random | None = None) -> bool:
    """Flip one coin; ``True`` is heads."""
    return (rng or random).random() < 0.5


def flip_coins(count: int, rng: random.Random | None = None) -> Tuple[int, int]:
    """Flip ``count`` coins and return ``(heads, tails)``.

    Raises:
        CoinLimitError: ``count`` exceeds :data:`MAX_COINS`.
        ValueError: ``count`` is negative.
    """
    if count < 0:
        raise ValueError("coin count must be non-negative")
    if count > MAX_COINS:
        raise CoinLimitError()
    heads = sum(1 for _ in range(count) if flip_coin(rng))
    return heads, count - heads


def eight_ball(rng: random.Random | None = None) -> str:
    return (rng or random).choice(EIGHT_BALL_ANSWERS)
