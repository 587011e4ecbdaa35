"""
Orange Pi 5 Plus Kernel Builder

Kernel build and installer pipelines for the RK3588 SoC with Mali G610 GPU support.
"""

__version__ = "1.0.0"
__author__ = "Orange Pi Kernel Builder Team"
