"""Instance lifecycle enumeration."""

from enum import Enum


class InstanceLifecycle(Enum):
    """Pricing path a price observation came from."""

    SPOT = "spot"
    ONDEMAND = "ondemand"
