"""
Measurement algorithms: latency sampling and time-windowed throughput.
"""
