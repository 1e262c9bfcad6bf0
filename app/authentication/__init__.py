"""
Authentication application.

Email-based users carrying a marketplace role (employer, contractor,
arbitrator, admin). Roles decide who may pay for milestones, who may rule
on disputes and who may approve withdrawals.

Usage:
    from authentication.models import User, UserRole
"""
