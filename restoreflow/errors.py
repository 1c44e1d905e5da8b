"""
Error taxonomy shared by the gateways, the routes and the client workflow.

Every error carries the HTTP status the routes answer with and a human-readable
message; nothing more structured ever reaches the client.
"""


class RestoreFlowError(Exception):
    """Base class for all RestoreFlow failures."""

    status_code = 500
    default_message = "Unexpected error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class MissingInput(RestoreFlowError):
    """The file or image reference is absent. User-correctable."""

    status_code = 400
    default_message = "Missing input"


class ConfigurationError(RestoreFlowError):
    """The provider credential is absent. Operator-fixable."""

    status_code = 500
    default_message = "FAL_KEY environment variable is not set"


class UpstreamFailure(RestoreFlowError):
    """The provider call raised."""

    status_code = 500
    default_message = "Provider request failed"


class EmptyResult(RestoreFlowError):
    """The provider answered without a usable output reference."""

    status_code = 500
    default_message = "Provider returned no output"


class StageError(RestoreFlowError):
    """A workflow action was triggered from a stage that does not allow it."""

    status_code = 409
    default_message = "Action not allowed in the current stage"
