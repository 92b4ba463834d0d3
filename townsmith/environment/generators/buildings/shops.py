"""Shop slots and opening hours.

A ShopSlot binds a shop identity (type, name, hours) to a building and to the
two cells an economy collaborator needs: the door and the first interior cell
behind it, where the shopkeeper stands.
"""

from __future__ import annotations

from dataclasses import dataclass

from townsmith import config
from townsmith.types import MinuteOfDay, WorldTilePos

from .building import Building

MINUTES_PER_DAY = 24 * 60


def parse_time_of_day(text: str | None) -> MinuteOfDay | None:
    """Parse an ``"HH:MM"`` string into minutes past midnight.

    Returns None for missing or malformed values so callers can fall back to
    their default hours.
    """
    if not text:
        return None
    hours, sep, minutes = str(text).strip().partition(":")
    if not sep or not hours.isdigit() or not minutes.isdigit():
        return None
    h, m = int(hours), int(minutes)
    if not (0 <= h < 24 and 0 <= m < 60):
        return None
    return h * 60 + m


@dataclass(frozen=True)
class ShopSchedule:
    """Daily opening hours.

    Attributes:
        open_minute: Minute of day the shop opens.
        close_minute: Minute of day the shop closes. May be earlier than
            ``open_minute`` for shops that stay open past midnight.
        always_open: If True the other two fields are ignored.
    """

    open_minute: MinuteOfDay
    close_minute: MinuteOfDay
    always_open: bool = False

    @classmethod
    def from_strings(
        cls,
        open_time: str | None = None,
        close_time: str | None = None,
        always_open: bool = False,
    ) -> ShopSchedule:
        if always_open:
            return ALWAYS_OPEN
        open_minute = parse_time_of_day(open_time)
        close_minute = parse_time_of_day(close_time)
        if open_minute is None or close_minute is None:
            return DEFAULT_SCHEDULE
        return cls(open_minute, close_minute)

    def is_open(self, minute_of_day: MinuteOfDay) -> bool:
        if self.always_open:
            return True
        minute = minute_of_day % MINUTES_PER_DAY
        if self.open_minute == self.close_minute:
            return False
        if self.open_minute < self.close_minute:
            return self.open_minute <= minute < self.close_minute
        # Overnight: open in the evening, close after midnight.
        return minute >= self.open_minute or minute < self.close_minute


ALWAYS_OPEN = ShopSchedule(0, 0, always_open=True)
DEFAULT_SCHEDULE = ShopSchedule(
    parse_time_of_day(config.DEFAULT_SHOP_OPEN) or 8 * 60,
    parse_time_of_day(config.DEFAULT_SHOP_CLOSE) or 18 * 60,
)


@dataclass
class ShopSlot:
    """A shop hosted by a building.

    Attributes:
        building: The hosting building (referenced, never owned).
        door: Door cell customers enter through.
        inside: Interior cell next to the door where the keeper stands.
        shop_type: Lower-case shop kind (e.g., "inn", "blacksmith").
        name: Display name.
        schedule: Opening hours.
        sign_wanted: Whether a sign should be hung by the door.
    """

    building: Building
    door: WorldTilePos
    inside: WorldTilePos
    shop_type: str
    name: str
    schedule: ShopSchedule = DEFAULT_SCHEDULE
    sign_wanted: bool = True

    @property
    def is_inn(self) -> bool:
        return self.shop_type == "inn"


@dataclass(frozen=True)
class ShopDefinition:
    """Generic shop identity used when buildings are not authored shops."""

    shop_type: str
    name: str
    schedule: ShopSchedule


DEFAULT_SHOP_DEFINITIONS: tuple[ShopDefinition, ...] = (
    ShopDefinition("inn", "Inn", ALWAYS_OPEN),
    ShopDefinition(
        "blacksmith", "Blacksmith", ShopSchedule.from_strings("08:00", "17:00")
    ),
    ShopDefinition(
        "apothecary", "Apothecary", ShopSchedule.from_strings("09:00", "18:00")
    ),
    ShopDefinition("armorer", "Armorer", ShopSchedule.from_strings("08:00", "17:00")),
    ShopDefinition("trader", "Trader", ShopSchedule.from_strings("08:00", "18:00")),
)
