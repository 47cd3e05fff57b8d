"""
Use Cases

Organized into domain folders:
- auth/: Registration, login, token refresh, password reset, email verification
"""
