"""Utility helpers package.

Holds small text helpers shared by the chain services.
"""
