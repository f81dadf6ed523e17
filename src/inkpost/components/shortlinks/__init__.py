"""
Short links component - shorten and resolve share links.
"""

from .component import random_code, run_resolve, run_shorten, url_origin
from .models import ShortenInput, ShortLinkOutput, ShortLinkValidationError
from .ports import CodeGenerator, ShortUrlRepoPort, TimePort

__all__ = [
    # Entry points
    "run_shorten",
    "run_resolve",
    "random_code",
    "url_origin",
    # Models
    "ShortenInput",
    "ShortLinkOutput",
    "ShortLinkValidationError",
    # Ports
    "CodeGenerator",
    "ShortUrlRepoPort",
    "TimePort",
]
