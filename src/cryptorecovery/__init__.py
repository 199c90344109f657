"""Crypto Recovery: plan staged re-buys to lower a position's break-even price."""

__version__ = "0.1.0"
