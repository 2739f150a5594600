"""
Allow ``python -m nexus_speedtest``.
"""

from nexus_speedtest.cli import main

main()
