"""
Data Ingestion Module

Handles fetching and validating data from external sources:
- yfinance for daily adjusted close prices
"""

__version__ = "0.1.0"
