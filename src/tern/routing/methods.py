"""HTTP method bitset.

Each of the seven supported verbs owns one power-of-two bit. A set of
verbs is the bitwise OR of its members::

    Method.GET | Method.POST  -> 3
    decode(3)                 -> ("GET", "POST")
"""

import enum
from collections.abc import Iterable

from tern.errors import ConfigurationError


class Method(enum.IntFlag):
    """Bit flags for the supported HTTP verbs.

    Declaration order is the canonical universe order used by ``decode``.
    """

    GET = 1
    POST = 2
    PUT = 4
    DELETE = 8
    OPTIONS = 16
    PATCH = 32
    HEAD = 64

    ALL = GET | POST | PUT | DELETE | OPTIONS | PATCH | HEAD


# Fixed universe order. Iterating the IntFlag itself would also yield ALL.
VERBS: tuple[Method, ...] = (
    Method.GET,
    Method.POST,
    Method.PUT,
    Method.DELETE,
    Method.OPTIONS,
    Method.PATCH,
    Method.HEAD,
)

_BY_NAME: dict[str, Method] = {verb.name: verb for verb in VERBS}


def decode(bits: int) -> tuple[str, ...]:
    """Return the verb names whose bits are set, in universe order.

    Bits outside the universe are ignored.
    """
    return tuple(verb.name for verb in VERBS if bits & verb)


def encode(names: Iterable[str]) -> int:
    """OR together the bits of the named verbs.

    Raises ``ConfigurationError`` for a name outside the universe.
    """
    bits = 0
    for name in names:
        bits |= _verb(name)
    return bits


def parse_methods(value: int | str | Iterable[str]) -> tuple[str, ...]:
    """Normalise a registration-time method spec into verb names.

    Accepts a ``Method``/int bitset, a single verb name, or an iterable
    of verb names. Names are case-insensitive.
    """
    if isinstance(value, bool):
        msg = f"Expected a Method bitset or verb names, got {value!r}."
        raise ConfigurationError(msg)
    if isinstance(value, int):
        return decode(value)
    if isinstance(value, str):
        return decode(_verb(value))
    if isinstance(value, Iterable):
        return decode(encode(value))
    msg = f"Expected a Method bitset or verb names, got {type(value).__name__}."
    raise ConfigurationError(msg)


def _verb(name: object) -> Method:
    if not isinstance(name, str):
        msg = f"HTTP method names must be strings, got {name!r}."
        raise ConfigurationError(msg)
    try:
        return _BY_NAME[name.upper()]
    except KeyError:
        allowed = ", ".join(_BY_NAME)
        msg = f"Unknown HTTP method {name!r}. Expected one of: {allowed}."
        raise ConfigurationError(msg) from None
