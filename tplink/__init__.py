"""
TP-Link Archer C9 V1 admin client

Minimal administrative interface to a TP-Link Archer C9 V1 home wifi router:
- List wired clients
- List wireless clients
- Reboot the router
"""

__version__ = "0.1.0"
