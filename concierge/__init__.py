"""
Shop Concierge: a shopping assistant chat API backed by an LLM and a Shopify catalog.
"""

__version__ = "0.1.0"
