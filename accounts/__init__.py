"""
User accounts: registration, login with lockout, profiles and session tokens.
"""
