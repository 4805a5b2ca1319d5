"""Pure helpers shared by the protocol layer."""

from .checksum import compute_checksum
from .coordinates import decode_coordinate
from .numbers import parse_float, parse_int
