class TravelsMapError(Exception):
    """Base error for the travels map."""


class PayloadError(TravelsMapError):
    """The embedded travels payload is missing or malformed."""


class PageError(TravelsMapError):
    """The page lacks an element the map needs."""


class TopologyError(TravelsMapError):
    """The world topology cannot be turned into features."""
