# app/core/errors.py
"""
Error taxonomy for the ADT and pharmacy workflows.

Services raise these; the HTTP layer maps them to responses
(see app.main). Every DomainError carries a stable `code` and the
status the boundary should answer with.
"""


class DomainError(Exception):
    code = "domain_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    code = "not_found"
    status_code = 404


class ValidationError(DomainError):
    code = "validation_error"
    status_code = 422


class ConflictError(DomainError):
    code = "conflict"
    status_code = 409


class BedUnavailableError(ConflictError):
    code = "bed_unavailable"


class PatientAlreadyAdmittedError(ConflictError):
    code = "patient_already_admitted"


class AdmissionNotActiveError(ConflictError):
    code = "admission_not_active"


class DischargeSummaryExistsError(ConflictError):
    code = "discharge_summary_exists"


class ImmutableRecordError(ConflictError):
    code = "immutable_record"


class ExpiredBatchError(DomainError):
    code = "expired_batch"
    status_code = 422


class InsufficientStockError(ConflictError):
    code = "insufficient_stock"


class NoSingleBatchCoversError(ConflictError):
    """
    The medication's combined stock covers the request, but no single
    batch does. Dispensing never splits a request across batches.
    """

    code = "no_single_batch_covers"


class StorageError(Exception):
    """Unexpected persistence failure. Not a DomainError; always answers 500."""

    code = "storage_error"
    status_code = 500
