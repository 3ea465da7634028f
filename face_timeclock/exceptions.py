class TimeClockError(Exception):
    """Base exception for the face time clock."""


class CameraError(TimeClockError):
    """Raised when webcam access fails."""


class DetectorError(TimeClockError):
    """Raised when the face detector fails to load or to process a frame."""


class DatabaseError(TimeClockError):
    """Raised when database operations fail."""


class EncodingError(TimeClockError):
    """Raised when a stored face encoding cannot be turned back into a descriptor."""


class DescriptorError(TimeClockError):
    """Raised when descriptors of different dimensions are compared."""


class GeofenceError(TimeClockError):
    """Raised when a clock action is attempted outside the business radius."""


class ClockStateError(TimeClockError):
    """Raised when a clock action conflicts with the employee's open time entry."""
