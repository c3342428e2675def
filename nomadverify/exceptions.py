"""
nomadverify exceptions.

Each failure class carries a stable error code (see ErrorCode) and a
human-readable message. Callers convert these to HTTP responses or
UI states; the exception itself never decides presentation.
"""

from nomadverify.session.models import ErrorCode


SESSION_NOT_FOUND_MESSAGE = (
    "This verification session was not found. "
    "Please run /verify in Discord to get a new link."
)
INIT_FAILED_MESSAGE = "Failed to initialize verification app"


class ResolveError(Exception):
    """Session lookup failed.

    Carries:
        code: ErrorCode constant
        message: Text safe to show to the end user
        error: Short label for the API ``error`` field
        http_status: Status used by the lookup endpoint
    """

    def __init__(self, code: str, message: str, error: str, http_status: int):
        self.code = code
        self.message = message
        self.error = error
        self.http_status = http_status
        super().__init__(message)

    @classmethod
    def invalid_input(cls) -> "ResolveError":
        """Factory for INVALID_INPUT (missing or blank UUID)."""
        return cls(
            code=ErrorCode.INVALID_INPUT,
            message="UUID is required",
            error="UUID is required",
            http_status=400,
        )

    @classmethod
    def not_found(cls) -> "ResolveError":
        """Factory for SESSION_NOT_FOUND. User must re-issue via the bot."""
        return cls(
            code=ErrorCode.SESSION_NOT_FOUND,
            message=SESSION_NOT_FOUND_MESSAGE,
            error="Invalid verification link",
            http_status=404,
        )

    @classmethod
    def backend(cls) -> "ResolveError":
        """Factory for INTERNAL_ERROR.

        The underlying cause is logged by the resolver and chained via
        ``raise ... from``; it is never part of the message.
        """
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message="Internal server error",
            error="Internal server error",
            http_status=500,
        )


class BuildError(Exception):
    """Proof request construction failed.

    Always shown to the user as an initialization error, distinct from
    lookup errors. ``reason`` holds the operator-facing detail.
    """

    def __init__(self, code: str, reason: str):
        self.code = code
        self.reason = reason
        self.message = INIT_FAILED_MESSAGE
        super().__init__(f"{code}: {reason}")

    @classmethod
    def missing_identity(cls, reason: str) -> "BuildError":
        """Factory for MISSING_IDENTITY (no usable wallet or Discord id)."""
        return cls(code=ErrorCode.MISSING_IDENTITY, reason=reason)

    @classmethod
    def link_derivation_failed(cls, reason: str) -> "BuildError":
        """Factory for LINK_DERIVATION_FAILED (SDK rejected config or failed)."""
        return cls(code=ErrorCode.LINK_DERIVATION_FAILED, reason=reason)


class ProofSdkError(Exception):
    """Raised by the proof SDK capability for invalid app config or link failures."""


class CallbackError(Exception):
    """The proof capability reported a rejected or cancelled proof.

    Recoverable: the user may scan again without reloading.
    """

    code = ErrorCode.PROOF_CALLBACK_FAILED

    def __init__(self, detail):
        self.detail = detail
        super().__init__(f"proof callback failed: {detail}")


class UtilityFailure(Exception):
    """Clipboard or open-external action failed. Non-fatal."""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(message)

    @classmethod
    def clipboard(cls, reason: str) -> "UtilityFailure":
        return cls(code=ErrorCode.CLIPBOARD_FAILED, message=f"clipboard write failed: {reason}")

    @classmethod
    def open_external(cls, reason: str) -> "UtilityFailure":
        return cls(code=ErrorCode.OPEN_EXTERNAL_FAILED, message=f"open external failed: {reason}")
