"""
Erreurs typées du webhook de paiement (chacune porte son code HTTP).
"""

class WebhookError(Exception):
    status_code = 500
    public_message = "Internal Server Error"

    def __init__(self, message: str = "", code: str = "internal"):
        super().__init__(message or self.public_message)
        self.code = code

class InvalidSignature(WebhookError):
    status_code = 401
    public_message = "Invalid signature"

    def __init__(self, message: str = ""):
        super().__init__(message, code="invalid_signature")

class MissingSignature(InvalidSignature):
    public_message = "Missing signature"

class MalformedPayload(WebhookError):
    status_code = 400
    public_message = "Malformed payload"

    def __init__(self, message: str = ""):
        super().__init__(message, code="malformed_payload")

class MissingIdentifier(WebhookError):
    status_code = 400
    public_message = "Missing identifying info"

    def __init__(self, message: str = ""):
        super().__init__(message, code="missing_identifier")

class OrderNotFound(WebhookError):
    status_code = 404
    public_message = "Order not found"

    def __init__(self, message: str = ""):
        super().__init__(message, code="order_not_found")

class DatabaseError(WebhookError):
    status_code = 500
    public_message = "Database error"

    def __init__(self, message: str = ""):
        super().__init__(message, code="database_error")
