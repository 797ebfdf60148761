# dependencies.py - Accessors for the services built at startup
from fastapi import Request

from services.assignment import AssignmentCoordinator
from services.cloudinary_client import ObjectStorage
from services.maps import MapRegistry
from services.notifier import NotificationInbox
from services.report_store import ReportStore
from services.resolution import ResolutionPipeline
from services.vote_ledger import VoteLedger


def get_report_store(request: Request) -> ReportStore:
    return request.app.state.report_store


def get_vote_ledger(request: Request) -> VoteLedger:
    return request.app.state.vote_ledger


def get_assignment_coordinator(request: Request) -> AssignmentCoordinator:
    return request.app.state.assignment


def get_resolution_pipeline(request: Request) -> ResolutionPipeline:
    return request.app.state.resolution


def get_notification_inbox(request: Request) -> NotificationInbox:
    return request.app.state.inbox


def get_map_registry(request: Request) -> MapRegistry:
    return request.app.state.maps


def get_object_storage(request: Request) -> ObjectStorage:
    return request.app.state.storage
