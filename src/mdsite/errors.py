"""Build error taxonomy: every failure carries the offending path and a kind name"""


class BuildError(Exception):
    """Base class for failures raised while building the site."""
    kind = "BuildError"

    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = str(path)
        self.message = message


class NotFoundError(BuildError):
    """A declared content root or source file does not exist."""
    kind = "NotFoundError"


class UnreadableSourceError(BuildError):
    """A source file exists but cannot be read or is not valid UTF-8."""
    kind = "UnreadableSourceError"


class MalformedMetadataError(BuildError):
    """A front-matter block is present but is not a mapping of key/value pairs."""
    kind = "MalformedMetadataError"


class MissingTemplateError(BuildError):
    kind = "MissingTemplateError"

    def __init__(self, path: str, template: str):
        super().__init__(path, f"template '{template}' does not exist")
        self.template = template


class MalformedTemplateError(BuildError):
    kind = "MalformedTemplateError"


class MissingFieldError(BuildError):
    kind = "MissingFieldError"

    def __init__(self, path: str, field: str, template: str):
        super().__init__(path, f"template '{template}' references missing field '{field}'")
        self.field = field
        self.template = template


class BrokenLinkError(BuildError):
    kind = "BrokenLinkError"

    def __init__(self, path: str, url: str):
        super().__init__(path, f"link '{url}' does not resolve to any output page or asset")
        self.url = url


class OutputWriteError(BuildError):
    """Writing a single output file failed (permissions, disk space)."""
    kind = "IOError"


class BuildTimeoutError(BuildError):
    kind = "BuildTimeoutError"
