INVALID_ID = "Invalid product ID"
NOT_FOUND = "Product not found"
MISSING_FIELDS = "Name, category, and price are required"
INVALID_PRICE = "Price must be a positive number"
INVALID_FIELDS = "Invalid product fields"
INVALID_SORT_FIELD = "Invalid sort field"
INVALID_SORT_ORDER = "Invalid sort order"
INVALID_BODY = "Invalid request body"
ENDPOINT_NOT_FOUND = "Endpoint not found"


class ProductError(Exception):
    """Erreur de requête renvoyée au client sous la forme {"error": message}."""

    def __init__(self, status_code: int, message: str, error_type: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.error_type = error_type

    def to_dict(self):
        return {"error": self.message}


def bad_request(message: str, error_type: str) -> ProductError:
    return ProductError(400, message, error_type)


def not_found() -> ProductError:
    return ProductError(404, NOT_FOUND, "not_found")
