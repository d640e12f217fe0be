"""
Marketplace app for projects, bids and freelancer reputation.

This app handles:
- Projects posted by clients and their delivery lifecycle
- Bids from freelancers, limited by reputation tier
- Reviews after completion
- Tier recalculation from historical performance
"""
