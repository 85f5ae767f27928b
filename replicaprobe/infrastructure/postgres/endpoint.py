from __future__ import annotations

from typing import Self

from pydantic import BaseModel, ConfigDict, Field

from .config import EndpointParameters
from .locator import resolve_locator


class EndpointDescriptor(BaseModel):
    """One reachable database role, identified by name.

    The raw locator is kept for equality but hidden from ``repr`` because it
    may embed a password. Use `describe` for anything that gets logged.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(min_length=1)
    locator: str = Field(repr=False)
    parameters: EndpointParameters

    @classmethod
    def from_locator(cls, name: str, locator: str) -> Self:
        """Resolve ``locator`` eagerly so bad locators fail before any probing.

        Raises
        ------
        InvalidLocatorError
            If the locator cannot be parsed.
        """
        return cls(name=name, locator=locator, parameters=resolve_locator(locator))

    def describe(self) -> str:
        """Password-free ``host:port/database`` label."""
        params = self.parameters
        host = params.host or "<default>"
        port = f":{params.port}" if params.port else ""
        database = f"/{params.database}" if params.database else ""
        return f"{self.name}@{host}{port}{database}"
