"""
CallScreen - Backend Application Package

Screens inbound phone calls against the phoneblock.net reputation service:
- Phone number normalization and lookup candidates
- Reputation lookup with per-candidate failover
- Block/allow decision policy
- Best-effort webhook notifications
- HTTP webhook surface for call platforms
"""

__version__ = "0.1.0"
