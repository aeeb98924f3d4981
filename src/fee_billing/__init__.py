"""Fee Billing package.

This package is organized by feature modules (structures, billing, reports)
with a thin Flask controller layer and service/repository layers underneath.
"""
