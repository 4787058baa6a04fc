"""
Entitlement resolution tests.
"""

from datetime import timedelta

import pytest

from approvals.models.user import UserRole
from approvals.schemas.entitlement import ApprovalBasis

from conftest import (
    ADMIN_ID,
    DELEGATE_ID,
    EMPLOYEE_ID,
    INACTIVE_ID,
    LEADER_ID,
    MANAGER_ID,
    OTHER_MANAGER_ID,
    SECOND_EMPLOYEE_ID,
    TODAY,
)


async def _delegate(delegation_service, delegator, delegate, start, end):
    return await delegation_service.create_delegation(delegator, delegate, start, end, "PTO", delegator)


@pytest.mark.asyncio
async def test_admin_override(entitlement_service, org):
    result = await entitlement_service.resolve(ADMIN_ID, EMPLOYEE_ID)

    assert result.authorized
    assert result.basis == ApprovalBasis.ADMIN
    assert org.calls == []


@pytest.mark.asyncio
async def test_direct_manager(entitlement_service):
    result = await entitlement_service.resolve(MANAGER_ID, EMPLOYEE_ID)

    assert result.authorized
    assert result.basis == ApprovalBasis.DIRECT_MANAGER
    assert result.delegation_id is None


@pytest.mark.asyncio
async def test_unrelated_manager_is_denied(entitlement_service):
    result = await entitlement_service.resolve(OTHER_MANAGER_ID, EMPLOYEE_ID)

    assert not result.authorized
    assert result.basis == ApprovalBasis.NONE
    assert not result.lookup_failed


@pytest.mark.asyncio
async def test_skip_level_manager_is_not_a_direct_manager(entitlement_service):
    result = await entitlement_service.resolve(LEADER_ID, EMPLOYEE_ID)
    assert not result.authorized


@pytest.mark.asyncio
async def test_delegation_transfers_manager_authority(entitlement_service, delegation_service):
    delegation = await _delegate(delegation_service, MANAGER_ID, DELEGATE_ID, TODAY, TODAY + timedelta(days=5))

    result = await entitlement_service.resolve(DELEGATE_ID, EMPLOYEE_ID)
    assert result.authorized
    assert result.basis == ApprovalBasis.DELEGATION
    assert result.delegation_id == delegation.id
    assert result.on_behalf_of_user_id == MANAGER_ID

    unrelated = await entitlement_service.resolve(OTHER_MANAGER_ID, EMPLOYEE_ID)
    assert not unrelated.authorized

    # Delegation covers the delegator's reports only
    other_team = await entitlement_service.resolve(DELEGATE_ID, SECOND_EMPLOYEE_ID)
    assert not other_team.authorized


@pytest.mark.asyncio
async def test_expired_delegation_grants_nothing(entitlement_service, delegation_service):
    await _delegate(delegation_service, MANAGER_ID, DELEGATE_ID, TODAY - timedelta(days=10), TODAY - timedelta(days=1))

    result = await entitlement_service.resolve(DELEGATE_ID, EMPLOYEE_ID)
    assert not result.authorized
    assert result.basis == ApprovalBasis.NONE


@pytest.mark.asyncio
async def test_future_delegation_applies_only_in_window(entitlement_service, delegation_service):
    start = TODAY + timedelta(days=3)
    await _delegate(delegation_service, MANAGER_ID, DELEGATE_ID, start, start + timedelta(days=1))

    assert not (await entitlement_service.resolve(DELEGATE_ID, EMPLOYEE_ID)).authorized
    assert (await entitlement_service.resolve(DELEGATE_ID, EMPLOYEE_ID, as_of=start)).authorized


@pytest.mark.asyncio
async def test_revoked_delegation_grants_nothing(entitlement_service, delegation_service):
    delegation = await _delegate(delegation_service, MANAGER_ID, DELEGATE_ID, TODAY, TODAY + timedelta(days=5))
    await delegation_service.revoke_delegation(delegation.id, MANAGER_ID, UserRole.MANAGER)

    assert not (await entitlement_service.resolve(DELEGATE_ID, EMPLOYEE_ID)).authorized


@pytest.mark.asyncio
async def test_delegation_is_not_transitive(entitlement_service, delegation_service):
    # The leader delegates to the delegate; the leader manages the manager, not the employee
    await _delegate(delegation_service, LEADER_ID, DELEGATE_ID, TODAY, TODAY)

    assert not (await entitlement_service.resolve(DELEGATE_ID, EMPLOYEE_ID)).authorized
    assert (await entitlement_service.resolve(DELEGATE_ID, MANAGER_ID)).authorized


@pytest.mark.asyncio
async def test_inactive_or_unknown_approver_is_denied(entitlement_service, org):
    org.managers[EMPLOYEE_ID] = INACTIVE_ID

    assert not (await entitlement_service.resolve(INACTIVE_ID, EMPLOYEE_ID)).authorized
    assert not (await entitlement_service.resolve(9999, EMPLOYEE_ID)).authorized


@pytest.mark.asyncio
async def test_org_outage_fails_closed(entitlement_service, org, caplog):
    org.unavailable = True

    with caplog.at_level("WARNING"):
        result = await entitlement_service.resolve(MANAGER_ID, EMPLOYEE_ID)

    assert not result.authorized
    assert result.basis == ApprovalBasis.NONE
    assert result.lookup_failed
    assert "Entitlement lookup failed" in caplog.text


@pytest.mark.asyncio
async def test_directory_outage_fails_closed(entitlement_service, users):
    users.unavailable = True

    result = await entitlement_service.resolve(ADMIN_ID, EMPLOYEE_ID)
    assert not result.authorized
    assert result.lookup_failed


@pytest.mark.asyncio
async def test_employee_without_manager(entitlement_service, org):
    del org.managers[EMPLOYEE_ID]

    result = await entitlement_service.resolve(MANAGER_ID, EMPLOYEE_ID)
    assert not result.authorized
    assert not result.lookup_failed
