"""Data models for vCard property records and conversion settings."""

from dataclasses import dataclass, field
from typing import Optional

from .folding import fold

DEFAULT_DIMENSIONS = (96, 96)
DEFAULT_BACKEND = "pillow"


@dataclass
class PropertyLine:
    """One vCard property: name, ordered parameters and value."""

    name: str
    parameters: list[tuple[str, str]] = field(default_factory=list)
    value: str = ""

    def unfolded(self) -> str:
        """Return the logical line ``NAME;K1=V1;K2=V2:VALUE``."""
        head = ";".join([self.name] + [f"{k}={v}" for k, v in self.parameters])
        return f"{head}:{self.value}"

    def fold(self) -> list[bytes]:
        return fold(self.unfolded())

    @classmethod
    def photo(cls, format_tag: str, payload: str) -> "PropertyLine":
        """Build a base64 ``PHOTO`` property for an image of the given format."""
        return cls(
            name="PHOTO",
            parameters=[("TYPE", format_tag.lower()), ("ENCODING", "b")],
            value=payload,
        )


@dataclass(frozen=True)
class ConversionConfig:
    """Settings shared by every file of a run. Built once, never mutated."""

    dimensions: Optional[tuple[int, int]] = DEFAULT_DIMENSIONS  # None: no resize
    verbose: bool = False
    backend: str = DEFAULT_BACKEND

    @property
    def resize(self) -> bool:
        return self.dimensions is not None

    @property
    def geometry(self) -> str:
        """Dimensions as a ``WxH`` string (empty when resizing is off)."""
        if self.dimensions is None:
            return ""
        width, height = self.dimensions
        return f"{width}x{height}"
