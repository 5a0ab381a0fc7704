"""Grid Bounded Context - Geohash Codec.

Pure arithmetic on Python integers: no I/O, no external dependencies.

Two interchangeable variants share the same bit layout:
- string codes: base32, 5 bits per character, precision in characters
- integer codes: the raw interleaved bits, precision in bits

Bits interleave starting with longitude. A coordinate lying exactly on a split
line falls into the lower (western / southern) half.

Precision Reference (string codes):
    Length  Cell width x height at the equator
    1       5000km x 5000km
    4       39km x 20km
    6       1.2km x 610m
    8       38m x 19m
    12      3.7cm x 1.9cm
"""

from __future__ import annotations

import math

from domain.grid.errors import (
    InvalidCellCodeError,
    InvalidCoordinateError,
    InvalidPrecisionError,
)
from domain.grid.value_objects import BoundingBox, CellCode, GeoPoint

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
BASE32_ALPHABET = "0123456789bcdefghjkmnpqrstuvwxyz"
BASE32_DECODE_MAP = {char: index for index, char in enumerate(BASE32_ALPHABET)}
BITS_PER_CHAR = 5

DEFAULT_PRECISION = 6  # characters, ~1.2km x 610m
DEFAULT_INTEGER_PRECISION = 32  # bits
MAX_PRECISION = 12
MAX_INTEGER_PRECISION = 52  # bits representable exactly by a float mantissa

MIN_LAT, MAX_LAT = -90.0, 90.0
MIN_LON, MAX_LON = -180.0, 180.0

# (lat_step, lon_step) for N, NE, E, SE, S, SW, W, NW
NEIGHBOR_DIRECTIONS: tuple[tuple[int, int], ...] = (
    (1, 0),
    (1, 1),
    (0, 1),
    (-1, 1),
    (-1, 0),
    (-1, -1),
    (0, -1),
    (1, -1),
)


# ---------------------------------------------------------------------------
# Helpers: Validation and Range Handling
# ---------------------------------------------------------------------------
def validate_precision(precision: int, integer_mode: bool = False) -> int:
    """Return precision unchanged if the codec variant supports it."""
    limit = MAX_INTEGER_PRECISION if integer_mode else MAX_PRECISION
    if isinstance(precision, bool) or not (1 <= precision <= limit):
        raise InvalidPrecisionError(precision, integer_mode)
    return precision


def _check_coordinate(latitude: float, longitude: float) -> None:
    if not (MIN_LAT <= latitude <= MAX_LAT) or not (MIN_LON <= longitude <= MAX_LON):
        # NaN fails both comparisons and lands here as well
        raise InvalidCoordinateError(
            f"Coordinate ({latitude}, {longitude}) outside WGS84 range"
        )


def _wrap_longitude(longitude: float) -> float:
    """Wrap a longitude that stepped past the antimeridian back into range."""
    if longitude > MAX_LON:
        return MIN_LON + math.fmod(longitude, MAX_LON)
    if longitude < MIN_LON:
        return MAX_LON + math.fmod(longitude, MAX_LON)
    return longitude


def _clamp_latitude(latitude: float) -> float:
    return max(MIN_LAT, min(latitude, MAX_LAT))


# ---------------------------------------------------------------------------
# Bit Arithmetic
# ---------------------------------------------------------------------------
def _encode_bits(latitude: float, longitude: float, bit_depth: int) -> int:
    _check_coordinate(latitude, longitude)
    min_lat, max_lat = MIN_LAT, MAX_LAT
    min_lon, max_lon = MIN_LON, MAX_LON
    bits = 0
    for i in range(bit_depth):
        bits <<= 1
        if i % 2 == 0:
            mid = (min_lon + max_lon) / 2
            if longitude > mid:
                bits |= 1
                min_lon = mid
            else:
                max_lon = mid
        else:
            mid = (min_lat + max_lat) / 2
            if latitude > mid:
                bits |= 1
                min_lat = mid
            else:
                max_lat = mid
    return bits


def _decode_bits(bits: int, bit_depth: int) -> BoundingBox:
    min_lat, max_lat = MIN_LAT, MAX_LAT
    min_lon, max_lon = MIN_LON, MAX_LON
    for i in range(bit_depth):
        bit = (bits >> (bit_depth - 1 - i)) & 1
        if i % 2 == 0:
            mid = (min_lon + max_lon) / 2
            if bit:
                min_lon = mid
            else:
                max_lon = mid
        else:
            mid = (min_lat + max_lat) / 2
            if bit:
                min_lat = mid
            else:
                max_lat = mid
    return BoundingBox(south=min_lat, west=min_lon, north=max_lat, east=max_lon)


def _center(box: BoundingBox) -> GeoPoint:
    return GeoPoint(
        latitude=(box.south + box.north) / 2, longitude=(box.west + box.east) / 2
    )


def _step(box: BoundingBox, direction: tuple[int, int]) -> tuple[float, float]:
    """Return the (lat, lon) one cell away from box's center in direction.

    Latitude clamps at the poles, so stepping past a pole lands back in the
    polar row. Longitude wraps across the antimeridian.
    """
    lat_step, lon_step = direction
    center = _center(box)
    latitude = center.latitude + lat_step * (box.north - box.south)
    longitude = center.longitude + lon_step * (box.east - box.west)
    return _clamp_latitude(latitude), _wrap_longitude(longitude)


def _string_to_bits(geohash: str) -> int:
    if not isinstance(geohash, str) or not geohash:
        raise InvalidCellCodeError(f"Geohash must be a non-empty string: {geohash!r}")
    bits = 0
    for char in geohash.lower():
        try:
            bits = (bits << BITS_PER_CHAR) | BASE32_DECODE_MAP[char]
        except KeyError as e:
            raise InvalidCellCodeError(f"Invalid geohash character: {char!r}") from e
    return bits


def _bits_to_string(bits: int, precision: int) -> str:
    return "".join(
        BASE32_ALPHABET[(bits >> (BITS_PER_CHAR * (precision - 1 - i))) & 0x1F]
        for i in range(precision)
    )


def _check_int_code(code: int, bit_depth: int) -> int:
    validate_precision(bit_depth, integer_mode=True)
    if (
        isinstance(code, bool)
        or not isinstance(code, int)
        or not (0 <= code < 1 << bit_depth)
    ):
        raise InvalidCellCodeError(f"Code {code!r} does not fit in {bit_depth} bits")
    return code


# ---------------------------------------------------------------------------
# Public API: String Codes
# ---------------------------------------------------------------------------
def encode(
    latitude: float, longitude: float, precision: int = DEFAULT_PRECISION
) -> str:
    """Encode a coordinate to a geohash string of `precision` characters.

    Example:
        >>> encode(57.64911, 10.40744, 11)
        'u4pruydqqvj'
    """
    validate_precision(precision)
    bits = _encode_bits(latitude, longitude, precision * BITS_PER_CHAR)
    return _bits_to_string(bits, precision)


def decode_bbox(geohash: str) -> BoundingBox:
    """Return the cell's extent."""
    bits = _string_to_bits(geohash)
    validate_precision(len(geohash))
    return _decode_bits(bits, len(geohash) * BITS_PER_CHAR)


def decode(geohash: str) -> GeoPoint:
    """Return the cell's center."""
    return _center(decode_bbox(geohash))


def neighbor(geohash: str, direction: tuple[int, int]) -> str:
    """Return the adjacent cell in direction (lat_step, lon_step); (0, 1) is east."""
    latitude, longitude = _step(decode_bbox(geohash), direction)
    return encode(latitude, longitude, len(geohash))


def neighbors(geohash: str) -> list[str]:
    """Return the 8 surrounding cells: N, NE, E, SE, S, SW, W, NW."""
    return [neighbor(geohash, direction) for direction in NEIGHBOR_DIRECTIONS]


# ---------------------------------------------------------------------------
# Public API: Integer Codes
# ---------------------------------------------------------------------------
def encode_int(
    latitude: float, longitude: float, bit_depth: int = MAX_INTEGER_PRECISION
) -> int:
    """Encode a coordinate to an integer code of `bit_depth` bits."""
    validate_precision(bit_depth, integer_mode=True)
    return _encode_bits(latitude, longitude, bit_depth)


def decode_bbox_int(code: int, bit_depth: int = MAX_INTEGER_PRECISION) -> BoundingBox:
    return _decode_bits(_check_int_code(code, bit_depth), bit_depth)


def decode_int(code: int, bit_depth: int = MAX_INTEGER_PRECISION) -> GeoPoint:
    return _center(decode_bbox_int(code, bit_depth))


def neighbor_int(
    code: int, direction: tuple[int, int], bit_depth: int = MAX_INTEGER_PRECISION
) -> int:
    latitude, longitude = _step(decode_bbox_int(code, bit_depth), direction)
    return _encode_bits(latitude, longitude, bit_depth)


def neighbors_int(code: int, bit_depth: int = MAX_INTEGER_PRECISION) -> list[int]:
    return [
        neighbor_int(code, direction, bit_depth) for direction in NEIGHBOR_DIRECTIONS
    ]


# ---------------------------------------------------------------------------
# Codec bound to one precision and variant
# ---------------------------------------------------------------------------
class GeohashCodec:
    """Geohash operations at a fixed precision, for string or integer codes.

    Parameters
    ----------
    precision: int
        Characters for string codes, bits for integer codes.
    integer_mode: bool
        Select integer codes instead of base32 strings.
    """

    def __init__(self, precision: int, integer_mode: bool = False) -> None:
        self.precision = validate_precision(precision, integer_mode)
        self.integer_mode = integer_mode
        self.bit_depth = precision if integer_mode else precision * BITS_PER_CHAR

    def __repr__(self) -> str:
        return (
            f"GeohashCodec(precision={self.precision}, "
            f"integer_mode={self.integer_mode})"
        )

    @property
    def cells_per_row(self) -> int:
        """Number of cells in one full circle of longitude."""
        return 1 << ((self.bit_depth + 1) // 2)

    def encode(self, latitude: float, longitude: float) -> CellCode:
        if self.integer_mode:
            return encode_int(latitude, longitude, self.bit_depth)
        return encode(latitude, longitude, self.precision)

    def decode(self, code: CellCode) -> GeoPoint:
        return _center(self.decode_bbox(code))

    def decode_bbox(self, code: CellCode) -> BoundingBox:
        if self.integer_mode:
            return decode_bbox_int(code, self.bit_depth)  # type: ignore[arg-type]
        if not isinstance(code, str) or len(code) != self.precision:
            raise InvalidCellCodeError(
                f"Expected a geohash of {self.precision} characters, got {code!r}"
            )
        return decode_bbox(code)

    def neighbor(self, code: CellCode, direction: tuple[int, int]) -> CellCode:
        latitude, longitude = _step(self.decode_bbox(code), direction)
        return self.encode(latitude, longitude)
