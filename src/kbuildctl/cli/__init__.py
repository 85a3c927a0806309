"""
Command-line interface for kbuildctl.
"""
