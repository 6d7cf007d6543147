"""
Read-side pipeline for press kit analytics.
"""
