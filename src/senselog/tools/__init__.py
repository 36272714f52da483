"""Miscellaneous development tools and standalone helpers.

This package contains optional helpers that are useful while debugging or
reviewing recordings, including the Matplotlib batch plotter and the
``SENSELOG_DEBUG`` instrumentation hooks.
"""
