"""
Bracket detection for the Starling editor client.

Contains the cursor classifier and the CompletionTrigger state machine that
decides when link completion should be (re)opened while typing.
"""

from enum import Enum
from typing import Callable


class BracketState(Enum):
    """Where the cursor sits relative to square brackets."""

    NONE = 0
    INSIDE = 1
    FRESH = 2


def classify(line: str, col: int) -> BracketState:
    """Classify a cursor position in a line.

    The cursor at 0-based ``col`` sits between ``line[col - 1]`` and ``line[col]``.

    Returns:
        FRESH when directly between ``[`` and ``]``, INSIDE when some ``[``
        precedes the cursor and ``]`` follows it, NONE otherwise
    """
    # Can't be between brackets at the first or last character of the line
    if col <= 0 or col >= len(line):
        return BracketState.NONE

    bracket_directly_after = line[col] == "]"
    if not bracket_directly_after:
        return BracketState.NONE
    if line[col - 1] == "[":
        return BracketState.FRESH
    if "[" in line[:col]:
        return BracketState.INSIDE
    return BracketState.NONE


class CompletionTrigger:
    """Opens completion when the cursor enters brackets.

    A freshly typed ``[]`` always triggers. Typing inside brackets that already
    triggered stays silent until the cursor leaves bracket context, so the
    completion menu isn't reopened on every keystroke.
    """

    def __init__(self, invoke: Callable[[], None]):
        self.invoke = invoke
        self.active = False

    def update(self, line: str, col: int) -> bool:
        """Feed a cursor move or text change.

        Returns:
            True if completion was invoked
        """
        state = classify(line, col)
        if state is BracketState.FRESH or (state is BracketState.INSIDE and not self.active):
            self.active = True
            self.invoke()
            return True
        if state is BracketState.NONE:
            self.active = False
        return False

    def reset(self) -> None:
        self.active = False
