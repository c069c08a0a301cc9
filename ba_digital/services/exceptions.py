"""
Custom Exceptions untuk BA Digital Services
===========================================

Definisi semua custom exceptions yang digunakan dalam business logic
"""

class BADigitalException(Exception):
    """Base exception untuk semua BA Digital errors"""
    def __init__(self, message, error_code=None, details=None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

class ValidationError(BADigitalException):
    """Error untuk validation failures"""
    def __init__(self, message, field=None, details=None):
        super().__init__(message, 'VALIDATION_ERROR', details)
        self.field = field

class BusinessRuleError(BADigitalException):
    """Error untuk business rule violations"""
    def __init__(self, message, rule_code=None, details=None):
        super().__init__(message, 'BUSINESS_RULE_ERROR', details)
        self.rule_code = rule_code

class InvalidTransitionError(BusinessRuleError):
    """Error ketika status dokumen tidak mengizinkan transisi"""
    def __init__(self, document_type, action, current_status, allowed_statuses=(), details=None):
        allowed = ' or '.join(allowed_statuses) or 'a valid'
        message = (f"{document_type} must be in {allowed} status to {action.replace('_', ' ')} "
                   f"(current status: {current_status})")
        super().__init__(message, 'INVALID_TRANSITION', details)
        self.document_type = document_type
        self.action = action
        self.current_status = current_status

class DuplicateApprovalError(BusinessRuleError):
    """Error ketika approver yang sama approve dua kali"""
    def __init__(self, document_type, approver_id, details=None):
        super().__init__(f"You have already approved this {document_type}", 'DUPLICATE_APPROVAL', details)
        self.approver_id = approver_id

class SignatureRequiredError(BusinessRuleError):
    """Error ketika approval butuh tanda tangan yang belum diupload"""
    def __init__(self, document_type, hint=None, details=None):
        path = document_type.lower()
        message = (f"Please upload your signature first before approving. "
                   f"Use POST /api/{path}/:id/signature to upload.")
        super().__init__(message, 'SIGNATURE_REQUIRED', details)
        self.hint = hint or 'Signature must be uploaded separately before approval'

class AuthenticationError(BADigitalException):
    """Error untuk authentication failures"""
    def __init__(self, message="Authentication failed", details=None):
        super().__init__(message, 'AUTHENTICATION_ERROR', details)

class AuthorizationError(BADigitalException):
    """Error untuk authorization failures"""
    def __init__(self, message="Access denied", required_role=None, details=None):
        super().__init__(message, 'AUTHORIZATION_ERROR', details)
        self.required_role = required_role

class NotFoundError(BADigitalException):
    """Error ketika resource tidak ditemukan"""
    def __init__(self, resource_type, resource_id, details=None):
        message = f"{resource_type} with ID {resource_id} not found"
        super().__init__(message, 'NOT_FOUND', details)
        self.resource_type = resource_type
        self.resource_id = resource_id

class PartialWriteError(BADigitalException):
    """
    Error ketika urutan write multi-langkah gagal di tengah jalan.
    compensated=True berarti parent row sudah dihapus kembali (create path);
    compensated=False berarti state tidak konsisten dan butuh rekonsiliasi manual.
    """
    def __init__(self, message, compensated=False, details=None):
        super().__init__(message, 'PARTIAL_WRITE_ERROR', details)
        self.compensated = compensated

class ExternalServiceError(BADigitalException):
    """Error untuk external service failures"""
    def __init__(self, service_name, message, status_code=None, details=None):
        super().__init__(f"{service_name}: {message}", 'EXTERNAL_SERVICE_ERROR', details)
        self.service_name = service_name
        self.status_code = status_code

class StoreError(ExternalServiceError):
    """Error ketika store relasional tidak bisa diakses atau menolak statement"""
    def __init__(self, message, details=None):
        super().__init__('STORE', message, details=details)
