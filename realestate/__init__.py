"""Real Estate Simplified - viewing appointment API"""
