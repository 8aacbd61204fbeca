"""Exception types raised while building the calendar site."""


class CalendarSiteError(Exception):
    """Base class for all calendar site generation errors."""


class MalformedEventError(CalendarSiteError):
    """Event is missing a required field or has an impossible time span."""


class DateArithmeticError(CalendarSiteError):
    """A derived date (ISO week, month boundary) could not be computed."""


class OutputPathError(CalendarSiteError):
    """Output directory is missing, unusable, or a file write failed."""


class ConfigurationError(CalendarSiteError, ValueError):
    """A configuration value is missing or invalid."""


class CalendarSourceError(CalendarSiteError):
    """A calendar source could not be read or parsed."""
