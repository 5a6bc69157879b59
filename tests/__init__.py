"""
Test suite for the Shopify catalog import.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_product_reconciler.py -v
"""
