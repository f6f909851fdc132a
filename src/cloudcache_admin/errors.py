"""Exception hierarchy for cloudcache-admin.

Every error is terminal for the current invocation; the CLI prints the
message and exits non-zero.
"""


class CloudCacheAdminError(Exception):
    """Base class for all errors raised by the command pipeline."""


class InputError(CloudCacheAdminError):
    """Malformed command line (missing target or command, bad config file)."""


class CredentialError(CloudCacheAdminError):
    """Cluster credentials could not be obtained."""


class CatalogError(CloudCacheAdminError):
    """The API description document could not be used."""


class UnreachableCatalog(CatalogError):
    def __init__(self, url: str, reason: str):
        self.url = url
        super().__init__(f"unable to reach {url}: {reason}")


class MalformedCatalog(CatalogError):
    def __init__(self, reason: str):
        super().__init__(f"invalid API description document: {reason}")


class DispatchError(CloudCacheAdminError):
    """The parsed command could not be turned into a request."""


class UnknownCommand(DispatchError):
    def __init__(self, command: str):
        self.command = command
        super().__init__(
            f"No endpoint was found for your request: '{command}'.\n"
            f"Use the 'commands' command to see the list of supported commands."
        )


class MissingParameter(DispatchError):
    def __init__(self, command: str, parameter: str):
        self.command = command
        self.parameter = parameter
        super().__init__(
            f"Command '{command}' requires the '{parameter}' parameter.\n"
            f"Please re-enter your command appended with -{parameter} <value>"
        )


class MissingBody(DispatchError):
    def __init__(self, command: str, method: str):
        self.command = command
        self.method = method
        super().__init__(
            f"A JSON request body is required for '{command}' ({method}).\n"
            f"Please re-enter your command appended with -body '<json>' or -d @<your_json_file>"
        )


class TransportError(CloudCacheAdminError):
    """Network failure or non-success HTTP status."""

    def __init__(self, method: str, url: str, reason: str, status=None, body: str = ''):
        self.method = method
        self.url = url
        self.status = status
        self.body = body
        message = f"{method} {url} failed: {reason}"
        if body:
            message += f"\n{body}"
        super().__init__(message)


class ApiErrorResponse(TransportError):
    """Non-success HTTP status whose body is the API's JSON error envelope.

    ``rendered`` is filled in by the pipeline with the envelope formatted the
    way the command's output would have been.
    """

    def __init__(self, method: str, url: str, status: int, body: str, status_code: str = '',
                 status_message: str = ''):
        reason = f"HTTP {status} {status_code}".rstrip()
        if status_message:
            reason += f": {status_message}"
        super().__init__(method, url, reason, status=status)
        self.body = body
        self.status_code = status_code
        self.status_message = status_message
        self.rendered = None


class RenderError(CloudCacheAdminError):
    """The API response could not be rendered."""


class InvalidEnvelope(RenderError):
    def __init__(self, reason: str):
        super().__init__(f"invalid response from the management API: {reason}")
