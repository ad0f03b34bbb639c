"""
Scoped override of the host's display settings.

The host document is switched to meters, dot decimal separator and no digit
grouping while an export runs, and restored on every exit path.
"""

from typing import Optional
from loguru import logger

from stfexport.core.models import DecimalSymbol, DisplaySettings
from stfexport.providers.base import ModelProvider


class DisplaySettingsScope:
    """Context manager forcing export display settings on a provider."""

    def __init__(self, provider: ModelProvider):
        self.provider = provider
        self.saved: Optional[DisplaySettings] = None

    def __enter__(self) -> DisplaySettings:
        self.saved = self.provider.display_settings()
        forced = self.saved.for_export()

        if self.saved.decimal_symbol == DecimalSymbol.COMMA:
            logger.debug("Host uses a comma decimal symbol, switching to dot for export")

        self.provider.apply_display_settings(forced)
        return forced

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        if self.saved is not None:
            self.provider.apply_display_settings(self.saved)
            logger.debug(f"Restored display settings ({self.saved.length_unit})")
            self.saved = None
        return False
