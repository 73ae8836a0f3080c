"""
Revenue dashboard client.
"""
