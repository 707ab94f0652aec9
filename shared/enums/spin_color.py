"""
Spin Color Enumerations
"""

from enum import Enum
from typing import Any


class SpinColor(str, Enum):
    """
    Color of a roulette result
    Board: 0 is white, 1-7 red, 8-14 black
    """
    WHITE = "white"      # 0
    RED = "red"          # 1 - 7
    BLACK = "black"      # 8 - 14
    UNKNOWN = "unknown"  # anything outside the board

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_number(cls, number: Any) -> "SpinColor":
        """
        Classify a roll

        Total over any input: values that are not integers on the board
        map to UNKNOWN instead of raising.

        Args:
            number: Rolled number

        Returns:
            SpinColor enum
        """
        if isinstance(number, bool) or not isinstance(number, int):
            return cls.UNKNOWN

        if number == 0:
            return cls.WHITE
        if 1 <= number <= 7:
            return cls.RED
        if 8 <= number <= 14:
            return cls.BLACK
        return cls.UNKNOWN
