"""Dining API configuration: known halls."""
from typing import Dict, NamedTuple


class DiningHallConfig(NamedTuple):
    name: str
    slug: str
    # DiningOptionID expected by the dining API
    option_id: int


DINING_HALLS: Dict[str, DiningHallConfig] = {
    "ikenberry": DiningHallConfig("Ikenberry Dining Center", "ikenberry", 1),
    "par": DiningHallConfig("PAR Dining Hall", "par", 2),
    "isr": DiningHallConfig("ISR Dining Center", "isr", 3),
    "lincoln-allen": DiningHallConfig("Lincoln/Allen Dining Hall", "lincoln-allen", 5),
    "field-of-greens": DiningHallConfig("Field of Greens", "field-of-greens", 12),
}
