"""
Console rendering: live progress bars and the result summary.
"""
