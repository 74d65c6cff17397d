"""Action error taxonomy.

All four errors are recoverable at the loop level: the executor folds them
into a failed ActionResult and the conversation continues.
"""


class ActionError(Exception):
    """Base class for recoverable per-action failures."""

    pass


class UnknownOperation(ActionError):
    """The operation ID (or namespace) is not in the dispatch table."""

    def __init__(self, operation_id: str, namespace: str | None = None) -> None:
        self.operation_id = operation_id
        self.namespace = namespace
        if namespace is not None:
            message = f"unknown function: {operation_id} (no integration named '{namespace}')"
        else:
            message = f"unknown function: {operation_id}"
        super().__init__(message)


class CredentialResolutionFailed(ActionError):
    """No usable credential could be resolved for the calling user."""

    pass


class ArgumentShapeInvalid(ActionError):
    """A required field is absent or has the wrong shape."""

    def __init__(self, operation_id: str, missing: list[str]) -> None:
        self.operation_id = operation_id
        self.missing = missing
        super().__init__(
            f"missing or invalid required parameters for {operation_id}: {', '.join(missing)}"
        )


class UpstreamCallFailed(ActionError):
    """The transactional API rejected the call, errored, or timed out."""

    pass
