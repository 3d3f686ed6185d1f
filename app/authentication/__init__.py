"""
Authentication application.

Email-based accounts, JWT login/logout, presence and role capabilities.

Key components:
    - User model: Custom email-based user with role and presence fields
    - Capability / HasCapability: Role-derived permission checks
    - AuthService: Registration, login, logout and presence updates

Usage:
    from authentication.models import User, UserRole
    from authentication.permissions import Capability
    from authentication.services import AuthService
"""
