from dataclasses import dataclass
from typing import Any, Optional

from chalicelib.utils.errors import AppError


@dataclass
class ServiceResult:
    """
    Outcome of an entity service call.

    ``ok`` tells a failed call apart from an empty one: a lookup that finds
    nothing is a success with ``data=None``, a call that raised carries the
    classified error instead.
    """
    data: Any = None
    error: Optional[AppError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def found(self) -> bool:
        return self.ok and self.data is not None

    @property
    def user_message(self) -> Optional[str]:
        return self.error.user_message if self.error else None

    @classmethod
    def success(cls, data: Any = None) -> 'ServiceResult':
        return cls(data=data)

    @classmethod
    def failure(cls, error: AppError) -> 'ServiceResult':
        return cls(error=error)

    def unwrap_or(self, default: Any) -> Any:
        return self.data if self.found else default
