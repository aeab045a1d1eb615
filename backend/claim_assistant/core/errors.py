"""
Error taxonomy for the claim orchestration core.

Run failures (propagate to the caller):
  UnknownAction, InvariantViolation, StepBoundExceeded

Absorbed into the conversation as tool-result turns:
  ValidationRejection, ToolExecutionFailure

Entry-point guards:
  ThreadBusy, ThreadNotFound
"""


class ClaimAgentError(Exception):
    """Base class for every error raised by the orchestration core."""

    code = "CLAIM_AGENT_ERROR"


class UnknownAction(ClaimAgentError):
    """The reasoner proposed a tool name that is neither gated nor registered."""

    code = "UNKNOWN_ACTION"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown action proposed: {name!r}")


class InvariantViolation(ClaimAgentError):
    """An internal contract was broken. Never retried."""

    code = "INVARIANT_VIOLATION"

    def __init__(self, message: str, **context) -> None:
        self.context = context
        super().__init__(message)


class ValidationRejection(ClaimAgentError):
    """A validation gate declined a proposed action."""

    code = "VALIDATION_REJECTED"

    def __init__(self, reason: str, field: str | None = None) -> None:
        self.reason = reason
        self.field = field
        super().__init__(reason)


class ToolExecutionFailure(ClaimAgentError):
    """A registered tool reported a failure (e.g. downstream service error)."""

    code = "TOOL_FAILED"


class StepBoundExceeded(ClaimAgentError):
    """The run used up its reasoning steps without reaching a final answer."""

    code = "STEP_BOUND_EXCEEDED"

    def __init__(self, thread_id: str, limit: int) -> None:
        self.thread_id = thread_id
        self.limit = limit
        super().__init__(f"Thread {thread_id!r} exceeded the step bound of {limit}")


class ThreadBusy(ClaimAgentError):
    """Another run is already active on this thread."""

    code = "THREAD_BUSY"

    def __init__(self, thread_id: str) -> None:
        self.thread_id = thread_id
        super().__init__(f"Thread {thread_id!r} already has an active run")


class ThreadNotFound(ClaimAgentError):
    code = "THREAD_NOT_FOUND"

    def __init__(self, thread_id: str) -> None:
        self.thread_id = thread_id
        super().__init__(f"Thread {thread_id!r} has no saved state")
