"""
npm-health - Check whether an npm package is still maintained
"""

__version__ = "0.1.0"
