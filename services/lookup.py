from dataclasses import dataclass
from typing import Any, Optional

OK = 'ok'
ABSENT = 'absent'
ERROR = 'error'


@dataclass(frozen=True)
class LookupResult:
    """Outcome of a degradable upstream lookup: data, no data, or an upstream error"""
    status: str
    value: Any = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, value) -> 'LookupResult':
        return cls(OK, value)

    @classmethod
    def absent(cls) -> 'LookupResult':
        return cls(ABSENT)

    @classmethod
    def failed(cls, error) -> 'LookupResult':
        return cls(ERROR, error=str(error) or error.__class__.__name__)

    @property
    def is_ok(self) -> bool:
        return self.status == OK

    @property
    def is_error(self) -> bool:
        return self.status == ERROR

    def value_or(self, default):
        return self.value if self.status == OK else default
