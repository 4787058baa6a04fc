"""
Dependency injection container using dependency-injector.
Wires the clock, org chart source, repositories and services.
"""

from dataclasses import dataclass
from typing import Optional

from dependency_injector import containers, providers
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from approvals.core.clock import SystemClock
from approvals.core.config import settings
from approvals.core.integrations.entra_id import GraphOrgRelationship
from approvals.core.integrations.org_chart import CachedOrgRelationship
from approvals.db import session as db_session
from approvals.db.repositories.approval_repository import SqlApprovalRepository
from approvals.db.repositories.audit_log_repository import SqlAuditSink
from approvals.db.repositories.user_repository import SqlOrgRelationship, SqlUserDirectory
from approvals.services.audit_service import AuditService
from approvals.services.delegation_service import DelegationService
from approvals.services.entitlement_service import EntitlementService
from approvals.services.timesheet_approval_service import TimesheetApprovalService
from approvals.services.timesheet_service import TimesheetService


def _session_factory() -> async_sessionmaker[AsyncSession]:
    if db_session.async_session_maker is None:
        db_session.create_sessionmaker()
    return db_session.async_session_maker


class Container(containers.DeclarativeContainer):
    """Dependency injection container."""

    # Configuration
    config = providers.Configuration()

    clock = providers.Singleton(SystemClock)

    # Sessionmaker for collaborators that open their own short-lived sessions
    session_factory = providers.Callable(_session_factory)

    # Org chart: one process-wide cache in front of the configured source
    database_org_chart = providers.Singleton(
        SqlOrgRelationship,
        session_factory=session_factory,
    )

    graph_org_chart = providers.Singleton(
        GraphOrgRelationship,
        session_factory=session_factory,
    )

    org_source = providers.Selector(
        config.org_chart_source,
        database=database_org_chart,
        graph=graph_org_chart,
    )

    org_chart = providers.Singleton(
        CachedOrgRelationship,
        inner=org_source,
        ttl_seconds=config.org_chart_cache_ttl_seconds.as_int(),
        clock=clock,
    )

    # Per-session collaborators; call with the request's AsyncSession
    approval_repository = providers.Factory(SqlApprovalRepository)
    user_directory = providers.Factory(SqlUserDirectory)
    audit_sink = providers.Factory(SqlAuditSink)


@dataclass
class ServiceBundle:
    """Services sharing one session, and therefore one unit of work."""
    delegations: DelegationService
    entitlements: EntitlementService
    approvals: TimesheetApprovalService
    timesheets: TimesheetService
    audit: AuditService


def build_services(session: AsyncSession, container: Optional[Container] = None) -> ServiceBundle:
    """Assemble the approvals services over ``session``."""
    container = container or get_container()
    clock = container.clock()
    repository = container.approval_repository(session)
    users = container.user_directory(session)
    sink = container.audit_sink(session)

    audit = AuditService(sink, sink)
    delegations = DelegationService(repository, users, audit, clock)
    entitlements = EntitlementService(users, container.org_chart(), delegations, clock)
    return ServiceBundle(
        delegations=delegations,
        entitlements=entitlements,
        approvals=TimesheetApprovalService(repository, entitlements, audit, clock),
        timesheets=TimesheetService(repository),
        audit=audit,
    )


def create_container() -> Container:
    """Create a container configured from application settings."""
    container = Container()
    container.config.from_dict({
        "org_chart_source": settings.ORG_CHART_SOURCE,
        "org_chart_cache_ttl_seconds": settings.ORG_CHART_CACHE_TTL_SECONDS,
    })
    return container


def get_services(session: AsyncSession = Depends(db_session.get_db)) -> ServiceBundle:
    """FastAPI dependency returning the services bound to the request's session."""
    return build_services(session)


# Global container instance
_container: Container = None


def get_container() -> Container:
    """Get the global dependency injection container."""
    global _container
    if _container is None:
        _container = create_container()
    return _container
