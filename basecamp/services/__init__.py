"""Data-access services, one per domain area."""

from basecamp.services.accounts import AccountService, AuthUser, GoTrueAuthClient
from basecamp.services.certificates import CertificateService
from basecamp.services.clarity_calls import ClarityCallService
from basecamp.services.curriculum import CurriculumService
from basecamp.services.dashboard import DashboardService
from basecamp.services.enrollments import EnrollmentService
from basecamp.services.partnerships import PartnershipService
from basecamp.services.profiles import ProfileService
from basecamp.services.submissions import BulkReviewResult, SubmissionService
from basecamp.services.whitelist import ImportResult, WhitelistService

__all__ = [
    "AccountService",
    "AuthUser",
    "BulkReviewResult",
    "CertificateService",
    "ClarityCallService",
    "CurriculumService",
    "DashboardService",
    "EnrollmentService",
    "GoTrueAuthClient",
    "ImportResult",
    "PartnershipService",
    "ProfileService",
    "SubmissionService",
    "WhitelistService",
]
