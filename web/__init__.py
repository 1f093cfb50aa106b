"""
Web interface for the estimator.
"""
