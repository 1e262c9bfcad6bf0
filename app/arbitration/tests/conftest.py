"""
Pytest fixtures for arbitration tests.

A disputed project between the shared ``employer`` and ``contractor``
with one held escrow of 1,000,000 Rials, and a case assigned to the shared
``arbitrator``.
"""

import pytest

from arbitration.tests.factories import ArbitrationFactory
from payments.tests.factories import EscrowTransactionFactory
from projects.models import ProjectStatus
from projects.tests.factories import MilestoneFactory, ProjectFactory

RESOLUTION = (
    "Both parties delivered part of what was agreed; the evidence supports "
    "the ruling below."
)


@pytest.fixture
def disputed_project(db, employer, contractor):
    return ProjectFactory(employer=employer, contractor=contractor, status=ProjectStatus.DISPUTED)


@pytest.fixture
def held_escrow(db, disputed_project):
    milestone = MilestoneFactory(project=disputed_project, amount=1_000_000)
    return EscrowTransactionFactory(milestone=milestone, held=True)


@pytest.fixture
def case(db, disputed_project, arbitrator):
    """Case on ``disputed_project`` assigned to ``arbitrator``."""
    return ArbitrationFactory(project=disputed_project, arbitrator=arbitrator, assigned=True)


@pytest.fixture
def pending_case(db, disputed_project):
    return ArbitrationFactory(project=disputed_project)


@pytest.fixture
def resolution():
    return RESOLUTION
