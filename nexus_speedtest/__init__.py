"""
Nexus speed test: latency, download and upload measurement against the MCMC Nexus test server.
"""

__version__ = "1.0.0"
