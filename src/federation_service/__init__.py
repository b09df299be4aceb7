"""
Identity Federation Service

Signs users in through GitHub OAuth and maps the verified identity onto a
local account, provisioning a fresh organization (tenant) on first login.
"""

__version__ = "1.0.0"
