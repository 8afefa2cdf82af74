"""
My Kendall backend - provisioning service for personal voice assistants.
"""
