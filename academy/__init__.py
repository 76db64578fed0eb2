"""
Initialization Information for the academy workflow apps
"""

__version__ = '1.4.0'
