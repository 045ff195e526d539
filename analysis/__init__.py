"""
Analysis Engine Module

Calculates return statistics from adjusted close prices:
- Log returns and date-aligned return tables
- Distribution moments (mean, std dev, skewness, kurtosis)
- Kendall correlation matrix and rolling Pearson correlation
- Jarque-Bera and Kolmogorov-Smirnov normality tests
"""

__version__ = "0.1.0"
