"""
StoreNet Module Entry Point
=============================

Allows running the StoreNet CLI via: python -m storenet
"""

from storenet.cli import main

if __name__ == "__main__":
    main()
