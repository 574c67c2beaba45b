"""Error conditions raised by training, loading and generation"""

from typing import Optional


class NgramError(Exception):
    """Base class for ngramgen errors"""

    pass


class EmptyCorpusError(NgramError, ValueError):
    """Raised when training is attempted on an empty token sequence"""

    def __init__(self, message: str = "Cannot train on an empty corpus"):
        super().__init__(message)


class UnknownTokenIdError(NgramError, ValueError):
    """Raised when a token id falls outside the vocabulary"""

    def __init__(self, token_id: int, vocab_size: Optional[int] = None, where: str = ""):
        self.token_id = token_id
        self.vocab_size = vocab_size
        if vocab_size is None:
            message = f"Unknown token id {token_id}"
        else:
            message = f"Unknown token id {token_id} (vocabulary size {vocab_size})"
        if where:
            message = f"{message} in {where}"
        super().__init__(message)


class UnknownTokenError(NgramError, ValueError):
    """Raised when a tokenizer without an unknown token meets an unseen word"""

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"Token '{token}' is not in the vocabulary")


class InvalidTemperatureError(NgramError, ValueError):
    """Raised when temperature is not strictly positive"""

    def __init__(self, temperature: float):
        self.temperature = temperature
        super().__init__(f"Temperature must be > 0, got {temperature}")


class ArtifactCorruptError(NgramError, ValueError):
    """Raised when a serialized artifact fails structural validation"""

    pass


class DeadEnd(NgramError):
    """No next-token candidates remain; generation stops naturally."""

    pass
