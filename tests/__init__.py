"""
Test Suite for the Asset Class Return Statistics Report

Includes:
- Unit tests for return, moment, correlation, and normality calculations
- Integration tests for the report pipeline with a mocked provider
- Rendering tests for the Markdown report and charts
"""
