#!/usr/bin/env python3
"""
Entry point for PyInstaller builds of page
"""
from page.cli import main

if __name__ == '__main__':
    main()
