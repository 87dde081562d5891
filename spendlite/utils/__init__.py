"""
Storage and database helpers
"""
