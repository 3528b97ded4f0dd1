"""
Registry of upstream services whose metrics the gateway aggregates.
"""

import json
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from shared.errors import ConfigurationError
from shared.logging import get_logger


class ServiceTarget(BaseModel):
    """A named upstream service exposing a metrics endpoint."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(min_length=1)
    url: str
    timeout: Optional[float] = Field(default=None, gt=0)

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        try:
            parsed = httpx.URL(value)
        except httpx.InvalidURL as exc:
            raise ValueError(f"invalid URL: {exc}") from exc
        if parsed.scheme not in ("http", "https") or not parsed.host:
            raise ValueError("URL must be an absolute http(s) URL")
        return value

    def public_view(self) -> Dict[str, str]:
        """The {name, url} shape exposed by the services listing."""
        return {"name": self.name, "url": self.url}


class ServiceRegistry:
    """Immutable, ordered collection of upstream service targets.

    Built once at startup and shared read-only by every request. Lookup is an
    exact, case-sensitive match on the service name.
    """

    def __init__(self, targets: Sequence[ServiceTarget]):
        self._targets: Tuple[ServiceTarget, ...] = tuple(targets)
        self._by_name: Dict[str, ServiceTarget] = {}
        for target in self._targets:
            if target.name in self._by_name:
                raise ConfigurationError(
                    f"Duplicate service name: {target.name}",
                    details={"service": target.name},
                )
            self._by_name[target.name] = target

    @classmethod
    def from_config(cls, raw: Union[str, Sequence[Mapping[str, Any]]]) -> "ServiceRegistry":
        """Build a registry from a JSON string or a list of {name, url} mappings."""
        logger = get_logger("aggregator.registry")

        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError as exc:
                raise ConfigurationError(
                    "Service list is not valid JSON",
                    details={"error": str(exc)},
                ) from exc

        if not isinstance(raw, list):
            raise ConfigurationError("Service list must be a JSON array of {name, url} objects")

        targets = []
        for index, item in enumerate(raw):
            try:
                targets.append(ServiceTarget.model_validate(item))
            except ValidationError as exc:
                raise ConfigurationError(
                    f"Invalid service entry at position {index}",
                    details={"entry": item, "errors": exc.errors(include_url=False)},
                ) from exc

        registry = cls(targets)
        logger.info("Service registry loaded", services=registry.names())
        return registry

    def list(self) -> List[ServiceTarget]:
        """All targets in registry order."""
        return list(self._targets)

    def find(self, name: str) -> Optional[ServiceTarget]:
        """Return the target registered under name, or None."""
        return self._by_name.get(name)

    def names(self) -> List[str]:
        return [target.name for target in self._targets]

    def __len__(self) -> int:
        return len(self._targets)

    def __iter__(self) -> Iterator[ServiceTarget]:
        return iter(self._targets)
