"""
Funding, building and signing of single-sender transactions.
"""
