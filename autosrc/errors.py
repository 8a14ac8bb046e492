"""Error taxonomy for the generation loop and the replay client."""


class AutosrcError(Exception):
    """Base class for every error raised deliberately by autosrc."""


class ManifestNotFoundError(AutosrcError):
    """The manifest document does not exist yet; the caller should bootstrap one."""


class ParseError(AutosrcError, ValueError):
    """Malformed JSON from the generator, a command file or the manifest."""


class ValidationError(AutosrcError, ValueError):
    """A command payload is missing fields or carries the wrong types."""


class GenerationError(AutosrcError):
    """The external generation call failed."""


class MissingCredentialError(AutosrcError):
    """The API key for the configured provider is not set."""
