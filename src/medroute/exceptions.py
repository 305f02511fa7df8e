"""Errors raised at the boundary of public medroute operations."""


class MedrouteError(Exception):
    """Base class for all medroute errors."""


class InvalidCoordinate(MedrouteError, ValueError):
    """Raised when a latitude/longitude pair is out of range or not a number."""


class InvalidRadius(MedrouteError, ValueError):
    """Raised when a facility search radius is not a positive finite number."""


class UndefinedGreatCircle(MedrouteError, ValueError):
    """Raised when two endpoints are antipodal and no unique great circle joins them."""


class ExportFormatError(MedrouteError, ValueError):
    """Raised when an exported route document does not have the expected shape."""
