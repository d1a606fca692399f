"""Vision extractor abstract base class."""
from __future__ import annotations
from abc import ABC, abstractmethod


class VisionExtractor(ABC):
    """Turns bill images/PDFs into the raw ``parse_irish_bill`` JSON document."""

    @abstractmethod
    async def extract(self, file_urls: list[str], *, is_pdf: bool = False) -> dict:
        """Return the raw structured document.

        Raises ``ExtractionError`` when the model gives no structured result.
        """
        ...

    @abstractmethod
    def get_model_name(self) -> str:
        """Return the model name being used."""
        ...
