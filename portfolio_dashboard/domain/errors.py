"""
Domain errors.

Each carries the HTTP status the API layer answers with.
"""


class PortfolioError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PortfolioError):
    status_code = 400


class NotFoundError(PortfolioError):
    status_code = 404


class ConflictError(PortfolioError):
    status_code = 409


class ConfigurationError(PortfolioError):
    status_code = 500
