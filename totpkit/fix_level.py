"""QR code error-correction levels, valued as the qrcode package's constants."""

from enum import IntEnum

from qrcode import constants


class FixLevel(IntEnum):
    """How much of a damaged QR symbol can be recovered."""

    FIX_LEVEL_7 = constants.ERROR_CORRECT_L
    FIX_LEVEL_15 = constants.ERROR_CORRECT_M
    FIX_LEVEL_25 = constants.ERROR_CORRECT_Q
    FIX_LEVEL_30 = constants.ERROR_CORRECT_H

    @classmethod
    def is_valid(cls, level) -> bool:
        if isinstance(level, bool) or not isinstance(level, int):
            return False
        try:
            cls(level)
        except ValueError:
            return False
        return True

    @property
    def percent(self) -> int:
        return _PERCENT[self]


FIX_LEVEL_DEFAULT = FixLevel.FIX_LEVEL_15

_PERCENT = {
    FixLevel.FIX_LEVEL_7: 7,
    FixLevel.FIX_LEVEL_15: 15,
    FixLevel.FIX_LEVEL_25: 25,
    FixLevel.FIX_LEVEL_30: 30,
}
