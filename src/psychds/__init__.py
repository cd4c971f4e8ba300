"""
psychds - A Psych-DS dataset creation wizard.

This package provides tools for turning a folder of CSV files into a dataset
that follows the Psych-DS standard: selecting data files, writing metadata,
renaming files with keywords, validating the result and uploading it to OSF.
"""

__version__ = "0.1.0"
