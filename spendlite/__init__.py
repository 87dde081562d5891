"""
SpendLite

A lightweight personal-finance categoriser: loads a bank-statement CSV,
applies editable keyword => category rules and reports filtered totals.
"""

__version__ = "1.0.0"
