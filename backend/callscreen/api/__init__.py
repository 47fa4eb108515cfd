"""
CallScreen - API Package

System endpoints (health, readiness, configuration).
"""
