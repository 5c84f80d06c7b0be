"""Domain errors and failure typing."""


class PipelineError(Exception):
    """Base class for pipeline failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class QueryError(PipelineError):
    """Raised when the search backend fails to return a page."""

    error_code = "QUERY_ERROR"

    def __init__(self, message: str, *, offset: int) -> None:
        super().__init__(f"{message} (offset={offset})")
        self.offset = offset


class PersistenceError(PipelineError):
    """Raised when a feature collection cannot be written to staging."""

    error_code = "PERSISTENCE_ERROR"


class PublishError(PipelineError):
    """Raised when a tileset upload or publish job fails."""

    error_code = "PUBLISH_ERROR"
