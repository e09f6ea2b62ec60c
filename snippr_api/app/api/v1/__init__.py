"""
Version 1 of the Snippr API.
"""
