#!/usr/bin/env python3
"""
DAO Treasury engine
Entry point for ``python -m dao_treasury.main``
"""
from .cli import main

if __name__ == "__main__":
    main()
