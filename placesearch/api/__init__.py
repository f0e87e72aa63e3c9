"""
Place Search API
FastAPI surface for search, sync administration and CMS webhooks.
"""
