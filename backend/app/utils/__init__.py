from .errors import error_response, pricing_error_response
