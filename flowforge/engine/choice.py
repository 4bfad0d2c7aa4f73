from __future__ import annotations

import random
from typing import Any, Callable, Sequence


# Every randomized decision in the engine goes through one of these:
# given a non-empty candidate list, return one element of it.
Chooser = Callable[[Sequence[Any]], Any]

default_chooser: Chooser = random.choice


def first_choice(candidates: Sequence[Any]) -> Any:
    return candidates[0]


def seeded_chooser(seed: int) -> Chooser:
    return random.Random(seed).choice
