from enum import Enum

# User roles as issued by the auth provider
class UserRole(str, Enum):
    CITIZEN = "CITIZEN"
    WORKER = "WORKER"
    ADMIN = "ADMIN"
    BUSINESS = "BUSINESS"

# Lifecycle status of a civic report
class ReportStatus(str, Enum):
    PENDING = "pending"
    ESCALATED = "escalated"
    ASSIGNED = "assigned"
    WORKING = "working"
    PENDING_CONFIRMATION = "pending_confirmation"  # worker says done, admin has not confirmed
    RESOLVED = "resolved"

# Civic issue categories
class ReportType(str, Enum):
    ILLEGAL_DUMPING = "illegal_dumping"
    OPEN_TOILET = "open_toilet"
    DIRTY_TOILET = "dirty_toilet"
    OVERFLOW_DUSTBIN = "overflow_dustbin"
    DEAD_ANIMAL = "dead_animal"
    FOWL = "fowl"
    PUBLIC_BIN_REQUEST = "public_bin_request"
    PUBLIC_TOILET_REQUEST = "public_toilet_request"

class VoteType(str, Enum):
    SUPPORT = "support"
    OPPOSE = "oppose"

# Kinds of notifications sent to users
class NotificationType(str, Enum):
    REPORT_ESCALATED = "report_escalated"
    REPORT_ASSIGNED = "report_assigned"
    PROOF_SUBMITTED = "proof_submitted"
    RESOLUTION_REQUESTED = "resolution_requested"
    REPORT_RESOLVED = "report_resolved"

class FacilityType(str, Enum):
    BIN = "BIN"
    TOILET = "TOILET"
    WASTE_FACILITY = "WASTE_FACILITY"
