class ModelError(Exception):
    pass


class ConfigurationError(ModelError):
    pass


class UnknownValidator(ConfigurationError):
    pass


class RecordInvalid(ModelError):
    def __init__(self, record):
        self.record = record
        messages = "; ".join(record.errors.full_messages)
        super().__init__(f"Validation failed: {messages}")


class RecordNotSaved(ModelError):
    def __init__(self, message, record=None):
        self.record = record
        super().__init__(message)


class StrictValidationFailed(ModelError):
    pass
