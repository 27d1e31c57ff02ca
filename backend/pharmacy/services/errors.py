# Overview: Error taxonomy shared by the sale, audit, alert and maintenance services.

from __future__ import annotations


class PharmacyError(Exception):
    """Base class for errors returned by pharmacy service operations."""
    http_status = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class InsufficientOrInvalidError(PharmacyError):
    """Expired medicine, insufficient stock, unknown medicine or bad quantity."""
    http_status = 400


class NotFoundError(PharmacyError):
    """The operation target does not exist."""
    http_status = 404


class AmbiguousRecordError(PharmacyError):
    """More than one row matched an identifier that must be unique."""
    http_status = 409


class TransactionFailedError(PharmacyError):
    """The store could not commit (contention, deadlock, storage error)."""
    http_status = 503


class LoggingFailedError(PharmacyError):
    """Audit append failed; escalated to TransactionFailedError by the runner."""
