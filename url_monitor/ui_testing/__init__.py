"""Page testing against live URLs."""

from .models import DiagnosticResult, ElementInfo, ElementProbeResult
from .prober import PageProber
from .runner import RunResults, UITestRunner
from .sampler import get_random_urls
from .signals import SignalCollector
from .whitelist import is_whitelisted

__all__ = [
    "DiagnosticResult",
    "ElementInfo",
    "ElementProbeResult",
    "PageProber",
    "RunResults",
    "SignalCollector",
    "UITestRunner",
    "get_random_urls",
    "is_whitelisted",
]
