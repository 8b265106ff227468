class PosError(Exception):
    """Base de todos los errores que se pueden mostrar al usuario."""

    def __init__(self, message=""):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return self.message


class ValidationError(PosError):
    """Error de formulario. `errors` es un dict {campo: mensaje}."""

    def __init__(self, errors, message=None):
        if isinstance(errors, str):
            errors = {"__all__": errors}
        self.errors = dict(errors)
        super().__init__(message or "; ".join(self.errors.values()))


class NetworkError(PosError):
    def __init__(self, message="No se pudo conectar con el servidor", status=None):
        super().__init__(message)
        self.status = status


class ServerValidationError(PosError):
    pass


class AuthenticationError(PosError):
    pass
