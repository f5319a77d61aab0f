#!/usr/bin/env python3

"""Intel Hex to raw binary file converter"""

import local
from hexbin.cli import main


if __name__ == '__main__':
    main()
