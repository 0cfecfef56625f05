"""Static QWERTY finger assignment used to group inter-key latency."""

from types import MappingProxyType

LEFT_PINKY = "left_pinky"
LEFT_RING = "left_ring"
LEFT_MIDDLE = "left_middle"
LEFT_INDEX = "left_index"
RIGHT_INDEX = "right_index"
RIGHT_MIDDLE = "right_middle"
RIGHT_RING = "right_ring"
RIGHT_PINKY = "right_pinky"
THUMB = "thumb"
OTHER = "other"

FINGER_GROUPS = (
    LEFT_PINKY,
    LEFT_RING,
    LEFT_MIDDLE,
    LEFT_INDEX,
    RIGHT_INDEX,
    RIGHT_MIDDLE,
    RIGHT_RING,
    RIGHT_PINKY,
    THUMB,
    OTHER,
)

_COLUMNS = {
    LEFT_PINKY: "`1qaz",
    LEFT_RING: "2wsx",
    LEFT_MIDDLE: "3edc",
    LEFT_INDEX: "45rtfgvb",
    RIGHT_INDEX: "67yuhjn",
    RIGHT_MIDDLE: "8ikm",
    RIGHT_RING: "9ol,",
    RIGHT_PINKY: "0-=p[]\\;'./",
    THUMB: " ",
}

FINGER_GROUP_MAP = MappingProxyType(
    {char: group for group, chars in _COLUMNS.items() for char in chars}
)


def finger_for(char: str) -> str:
    """Return the finger group for a character (case-insensitive), or 'other'."""
    return FINGER_GROUP_MAP.get(char.lower(), OTHER)
