"""Custom exception hierarchy for the automation monitor.

Exception Hierarchy:
    MonitorError (base)
    ├── ConfigurationError
    │   └── ThresholdValidationError
    ├── InvalidEventError
    ├── AlertNotFoundError
    └── SchedulerError

The ingestion path never lets these escape once an event has been accepted;
they are raised for caller mistakes (bad configuration, malformed events)
and by the HTTP layer to map missing entities to 404 responses.

Example Usage:
    >>> from automation_monitor.exceptions import ConfigurationError
    >>> try:
    ...     settings = MonitorSettings.from_yaml(path)
    ... except ConfigurationError as e:
    ...     print(e.message)
"""


class MonitorError(Exception):
    """Base exception for all automation monitor errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        """Initialize exception.

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(message)


class ConfigurationError(MonitorError):
    """Configuration-related errors.

    Examples:
        - Configuration file not found
        - Invalid YAML syntax
        - Invalid configuration values
    """

    pass


class ThresholdValidationError(ConfigurationError):
    """Monitoring thresholds failed validation.

    Attributes:
        automation_id: Automation whose thresholds were rejected
    """

    def __init__(self, message: str, automation_id: str | None = None) -> None:
        """Initialize exception.

        Args:
            message: Error message
            automation_id: Automation whose thresholds were rejected
        """
        self.automation_id = automation_id

        full_message = message
        if automation_id:
            full_message = f"{message} (automation: {automation_id})"

        super().__init__(full_message)
        # Preserve original message
        self.message = message


class InvalidEventError(MonitorError):
    """A lifecycle event was rejected before it was stored.

    Examples:
        - Empty automation id
        - Unknown event kind or status
        - Negative duration or retry count
    """

    pass


class AlertNotFoundError(MonitorError):
    """No alert exists with the requested identifier.

    Attributes:
        alert_id: The identifier that was looked up
    """

    def __init__(self, alert_id: str) -> None:
        """Initialize exception.

        Args:
            alert_id: The identifier that was looked up
        """
        self.alert_id = alert_id
        super().__init__(f"Alert not found: {alert_id}")


class SchedulerError(MonitorError):
    """The health-check scheduler could not be started or stopped."""

    pass
