"""Intel Hex to raw binary conversion tools"""

__version__ = '1.0.0'
