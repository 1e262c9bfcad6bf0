"""
Arbitration application.

A project party opens a case, an arbitrator takes it and rules who gets the
project's held escrow: the contractor, the employer, or a percentage split.
"""
