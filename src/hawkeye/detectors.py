"""
Detector abstraction.

A detector turns firmware metadata (and content, when available) into
vulnerabilities, potential issues and recommendations.
"""

from abc import ABC, abstractmethod
from typing import Optional

from .catalog import VULNERABILITIES, POTENTIAL_ISSUES, RECOMMENDATIONS, CATALOG_VERSION
from .types import Findings


class Detector(ABC):
    """Base class for vulnerability detectors."""

    name = "detector"

    @abstractmethod
    def detect(self, file_name: str, file_size: int,
               content: Optional[bytes] = None) -> Findings:
        """
        Produce findings for one firmware file.

        Args:
            file_name: Name of the firmware file
            file_size: Size in bytes
            content: File content, or None when only metadata is known

        Returns:
            Findings
        """
        pass


class CatalogDetector(Detector):
    """
    Reference detector returning the fixed finding catalog.

    Findings are not derived from content: every firmware image gets the
    same stable, non-empty set.
    """

    name = "catalog"
    version = CATALOG_VERSION

    def detect(self, file_name: str, file_size: int,
               content: Optional[bytes] = None) -> Findings:
        return Findings(
            vulnerabilities=VULNERABILITIES,
            potential_issues=POTENTIAL_ISSUES,
            recommendations=RECOMMENDATIONS,
        )
