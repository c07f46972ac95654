"""
StoreNet Shared Module
======================

Configuration, logging, console presentation and finding models shared
by the StoreNet packages.
"""

from shared.config import StoreNetConfig

__all__ = ["StoreNetConfig"]
