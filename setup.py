#!/usr/bin/env python3
"""
Setup script for DHCP6Mod

Provides automated dependency installation and framework setup.
"""

from setuptools import setup, find_packages

setup(
    name="DHCP6Mod",
    version="1.0.0",
    description="Composable DHCPv6 message construction built on Scapy",
    python_requires=">=3.10",
    install_requires=["scapy"],
    extras_require={
        "test": ["pytest"],
    },
    packages=find_packages(include=["dhcp6mod", "dhcp6mod.*"]),
    entry_points={
        "console_scripts": [
            "dhcp6mod=dhcp6mod.cli:main",
        ],
    },
)
