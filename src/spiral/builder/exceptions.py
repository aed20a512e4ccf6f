class BuildError(Exception):
    pass


class ValidationError(BuildError):
    pass


class InvalidDescriptorError(ValidationError):
    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid package descriptor field '{field}': {reason}")


class InvalidEntryError(ValidationError):
    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid file entry '{path}': {reason}")


class EncodingError(BuildError):
    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"Cannot encode '{field}' as UTF-8: {reason}")


class CompressionError(BuildError):
    pass


class ArchiveWriteError(BuildError):
    pass
