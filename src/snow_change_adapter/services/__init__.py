"""
Service-layer helpers wrapping adapters with caller-side policies.
"""

from .monitor import ProbeReport, probe_until_online

__all__ = ["ProbeReport", "probe_until_online"]
