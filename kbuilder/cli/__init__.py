"""
Command-Line Entry Points

- ``orangepi-kernel-builder``: kbuilder.cli.builder:main
- ``orangepi-installer``: kbuilder.cli.installer:main
"""
