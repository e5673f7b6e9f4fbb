"""
Test package for EchoChat.
"""
