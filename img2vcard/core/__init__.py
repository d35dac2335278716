"""Core logic - property records, settings and line folding."""

from .folding import fold, unfold
from .models import ConversionConfig, PropertyLine

__all__ = ["ConversionConfig", "PropertyLine", "fold", "unfold"]
