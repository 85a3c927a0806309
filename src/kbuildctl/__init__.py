"""
kbuildctl - build, package and announce an Android kernel for a single device.
"""

__version__ = "0.1.0"
