#!/usr/bin/env python3
from postforge.cli import main

if __name__ == "__main__":
    main()
