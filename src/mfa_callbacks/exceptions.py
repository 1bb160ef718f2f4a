"""Errors raised by the OTP core and its delivery collaborator."""


class InvalidArgumentError(ValueError):
    """An identity was empty or blank when issuing a code."""


class OtpAlreadyPendingError(Exception):
    """A fresh code is still outstanding and reissue is disabled."""

    def __init__(self, identity: str) -> None:
        super().__init__(f"An OTP is already pending for {identity!r}")
        self.identity = identity


class SmsDeliveryError(Exception):
    """The SMS gateway rejected or failed to accept a message."""
