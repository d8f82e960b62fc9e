# tests/test_users_api.py
from __future__ import annotations

import uuid

import pytest
from sqlalchemy import func, select

from app.core.roles import UserRole
from app.models.customer import Customer
from app.models.user import InternalUser


# ---------------------------------------------------------
# Listing / invitations
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_super_admin_lists_users(client, factory, headers_for):
    tenant = await factory.tenant("acme")
    admin = await factory.user(tenant, UserRole.SUPER_ADMIN, email="admin@acme.test")
    await factory.user(tenant, UserRole.VIEWER, email="viewer@acme.test")
    other = await factory.tenant("globex")
    await factory.user(other, UserRole.SUPER_ADMIN, email="admin@globex.test")

    resp = await client.get("/api/v1/acme/users", headers=headers_for(admin))

    assert resp.status_code == 200
    emails = sorted(u["email"] for u in resp.json()["data"])
    assert emails == ["admin@acme.test", "viewer@acme.test"]


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [UserRole.MANAGER, UserRole.VIEWER])
async def test_only_super_admin_manages_users(client, factory, headers_for, role):
    tenant = await factory.tenant("acme")
    await factory.user(tenant, UserRole.SUPER_ADMIN)
    caller = await factory.user(tenant, role)

    resp = await client.get("/api/v1/acme/users", headers=headers_for(caller))

    assert resp.status_code == 403
    assert resp.json() == {"success": False, "error": "Insufficient permissions"}


@pytest.mark.asyncio
async def test_invite_honours_requested_role(client, db, factory, headers_for):
    tenant = await factory.tenant("acme")
    admin = await factory.user(tenant, UserRole.SUPER_ADMIN)

    resp = await client.post(
        "/api/v1/acme/users",
        json={"email": "New.Person@Example.com", "first_name": "New", "role": "manager"},
        headers=headers_for(admin),
    )

    assert resp.status_code == 201, resp.text
    data = resp.json()["data"]
    assert data["email"] == "new.person@example.com"
    assert data["role"] == "MANAGER"
    assert data["is_pending"] is True

    external_id = (
        await db.execute(select(InternalUser.external_id).where(InternalUser.email == "new.person@example.com"))
    ).scalar_one()
    assert external_id is None


@pytest.mark.asyncio
async def test_invite_defaults_to_viewer(client, factory, headers_for):
    tenant = await factory.tenant("acme")
    admin = await factory.user(tenant, UserRole.SUPER_ADMIN)

    resp = await client.post(
        "/api/v1/acme/users",
        json={"email": "someone@example.com", "first_name": "Some"},
        headers=headers_for(admin),
    )

    assert resp.status_code == 201
    assert resp.json()["data"]["role"] == "VIEWER"


@pytest.mark.asyncio
async def test_invite_existing_email_conflicts(client, factory, headers_for):
    tenant = await factory.tenant("acme")
    admin = await factory.user(tenant, UserRole.SUPER_ADMIN)
    await factory.user(tenant, UserRole.VIEWER, email="taken@example.com")

    resp = await client.post(
        "/api/v1/acme/users",
        json={"email": "TAKEN@example.com", "first_name": "Dup"},
        headers=headers_for(admin),
    )

    assert resp.status_code == 409
    assert resp.json()["error"] == "User already exists"


@pytest.mark.asyncio
async def test_invite_unknown_role_is_rejected(client, factory, headers_for):
    tenant = await factory.tenant("acme")
    admin = await factory.user(tenant, UserRole.SUPER_ADMIN)

    resp = await client.post(
        "/api/v1/acme/users",
        json={"email": "someone@example.com", "first_name": "Some", "role": "OWNER"},
        headers=headers_for(admin),
    )

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Invalid role"
    assert "role" in body["details"]


# ---------------------------------------------------------
# Role changes / removal
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_change_role(client, factory, headers_for):
    tenant = await factory.tenant("acme")
    admin = await factory.user(tenant, UserRole.SUPER_ADMIN)
    viewer = await factory.user(tenant, UserRole.VIEWER)

    resp = await client.patch(
        f"/api/v1/acme/users/{viewer.id}/role",
        json={"role": "MANAGER"},
        headers=headers_for(admin),
    )

    assert resp.status_code == 200
    assert resp.json()["data"]["role"] == "MANAGER"

    me = await client.get("/api/v1/acme/me", headers=headers_for(viewer))
    assert me.json()["data"]["role"] == "MANAGER"


@pytest.mark.asyncio
async def test_cannot_demote_self(client, factory, headers_for):
    tenant = await factory.tenant("acme")
    admin = await factory.user(tenant, UserRole.SUPER_ADMIN)

    resp = await client.patch(
        f"/api/v1/acme/users/{admin.id}/role",
        json={"role": "VIEWER"},
        headers=headers_for(admin),
    )

    assert resp.status_code == 400
    assert resp.json()["error"] == "You cannot change your own role"


@pytest.mark.asyncio
async def test_user_of_another_tenant_is_not_found(client, factory, headers_for):
    tenant = await factory.tenant("acme")
    admin = await factory.user(tenant, UserRole.SUPER_ADMIN)
    other = await factory.tenant("globex")
    outsider = await factory.user(other, UserRole.VIEWER)

    resp = await client.patch(
        f"/api/v1/acme/users/{outsider.id}/role",
        json={"role": "MANAGER"},
        headers=headers_for(admin),
    )
    assert resp.status_code == 404
    assert resp.json()["error"] == "User not found"

    resp = await client.delete(f"/api/v1/acme/users/{uuid.uuid4()}", headers=headers_for(admin))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_user_keeps_their_customers(client, db, factory, headers_for):
    tenant = await factory.tenant("acme")
    admin = await factory.user(tenant, UserRole.SUPER_ADMIN)
    manager = await factory.user(tenant, UserRole.MANAGER)
    customer = await factory.customer(tenant, "+15551234567", created_by=manager)

    resp = await client.delete(f"/api/v1/acme/users/{manager.id}", headers=headers_for(admin))

    assert resp.status_code == 200
    assert resp.json()["data"]["message"] == "User deleted successfully"
    assert (
        await db.execute(select(func.count(InternalUser.id)).where(InternalUser.id == manager.id))
    ).scalar() == 0

    created_by = (
        await db.execute(select(Customer.created_by_user_id).where(Customer.id == customer.id))
    ).scalar_one()
    assert created_by is None


@pytest.mark.asyncio
async def test_cannot_delete_self(client, factory, headers_for):
    tenant = await factory.tenant("acme")
    admin = await factory.user(tenant, UserRole.SUPER_ADMIN)

    resp = await client.delete(f"/api/v1/acme/users/{admin.id}", headers=headers_for(admin))

    assert resp.status_code == 400
    assert resp.json()["error"] == "You cannot delete yourself"


# ---------------------------------------------------------
# /me and dashboard
# ---------------------------------------------------------
@pytest.mark.asyncio
@pytest.mark.parametrize(
    "role, capabilities",
    [
        (
            UserRole.SUPER_ADMIN,
            [
                "customers.create",
                "customers.delete",
                "customers.edit",
                "customers.view",
                "settings.manage",
                "users.manage",
            ],
        ),
        (UserRole.MANAGER, ["customers.create", "customers.delete", "customers.edit", "customers.view"]),
        (UserRole.VIEWER, ["customers.view"]),
    ],
)
async def test_me_lists_capabilities(client, factory, headers_for, role, capabilities):
    tenant = await factory.tenant("acme")
    user = await factory.user(tenant, role)

    resp = await client.get("/api/v1/acme/me", headers=headers_for(user))

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["role"] == role.value
    assert data["capabilities"] == capabilities
    assert data["tenant"]["slug"] == "acme"
    assert data["user"]["id"] == str(user.id)


@pytest.mark.asyncio
async def test_me_in_foreign_tenant_is_forbidden(client, factory, headers_for):
    await factory.tenant("acme")
    other = await factory.tenant("globex")
    outsider = await factory.user(other, UserRole.SUPER_ADMIN)

    resp = await client.get("/api/v1/acme/me", headers=headers_for(outsider))

    assert resp.status_code == 403
    assert resp.json()["error"] == "Forbidden"


@pytest.mark.asyncio
async def test_dashboard_counts(client, factory, headers_for):
    tenant = await factory.tenant("acme")
    viewer = await factory.user(tenant, UserRole.VIEWER)
    manager = await factory.user(tenant, UserRole.MANAGER)
    for i in range(7):
        await factory.customer(tenant, f"+1555123450{i}", created_by=manager)

    resp = await client.get("/api/v1/acme/dashboard", headers=headers_for(viewer))

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["customer_count"] == 7
    assert data["user_count"] == 2
    assert len(data["recent_customers"]) == 5
    assert data["tenant"]["slug"] == "acme"
