from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, Optional

from catalog_admin.core.exceptions import ProductValidationException


@dataclass(frozen=True)
class ValidationFailure:
    """Caller error found by a validation step. Returned, not raised."""

    message: str
    field: Optional[str] = None
    index: Optional[int] = None
    # dataclasses.field: the ``field`` attribute above shadows the bare name in this body
    details: Dict[str, Any] = dataclasses.field(default_factory=dict)

    def to_exception(self) -> ProductValidationException:
        return ProductValidationException(
            self.message,
            field=self.field,
            index=self.index,
            **self.details,
        )
