# private_key.py
from dataclasses import dataclass, field
from typing import Optional

from errors import InvalidCredential


@dataclass(frozen=True)
class PrivateKey:
    """PEM private key of a GitHub Application, trimmed and ready for signing."""

    key: str = field(repr=False)

    @classmethod
    def create(cls, raw: Optional[str]) -> "PrivateKey":
        if raw is None:
            raise InvalidCredential("A valid private key must be provided, none was supplied")
        # Keys pasted into env vars often carry literal "\n" sequences
        value = str(raw).replace("\\n", "\n").strip()
        if not value:
            raise InvalidCredential("The private key contained no characters other than whitespace")
        return cls(value)
