from __future__ import annotations

from flask import Flask, jsonify, request

from ..auth.guards import make_guards
from ..auth.permissions import landing_path_for, permissions_for
from ..common.http import json_body, query_arg
from ..common.validators import parse_positive_int
from ..container import Container
from ..core.constants import DEFAULT_ADMIN_USERS_LIMIT, DEFAULT_SYNC_LIMIT, MAX_PAGE_LIMIT
from ..core.enums import Role


def register(app: Flask, container: Container) -> None:
    login_required, role_required = make_guards(container.gate, container.identity)

    @app.get("/api/auth/redirect", endpoint="auth_redirect")
    @login_required
    def auth_redirect(user):
        return jsonify({"redirectUrl": landing_path_for(user), "role": user.role.value})

    @app.get("/api/users/me", endpoint="me")
    @login_required
    def me(user):
        profile = container.profile_service.get_profile(user)
        return jsonify({"user": profile.to_dict(), "permissions": permissions_for(user)})

    @app.put("/api/users/me", endpoint="update_me")
    @login_required
    def update_me(user):
        data = json_body()
        profile = container.profile_service.update_profile(
            user,
            first_name=data.get("firstName"),
            last_name=data.get("lastName"),
            phone=data.get("phone"),
            department=data.get("department"),
        )
        return jsonify({"message": "Profile updated successfully", "user": profile.to_dict()})

    @app.get("/api/admin/users", endpoint="admin_users")
    @role_required(Role.ADMIN)
    def admin_users(user):
        page = container.user_admin_service.list_users(
            role=query_arg("role"),
            department=query_arg("department"),
            status=query_arg("status"),
            search=query_arg("search"),
            page=parse_positive_int(request.args.get("page"), "page", 1),
            limit=parse_positive_int(
                request.args.get("limit"), "limit", DEFAULT_ADMIN_USERS_LIMIT, maximum=MAX_PAGE_LIMIT
            ),
        )
        return jsonify(
            {
                "users": [u.to_dict() for u in page.users],
                "pagination": {
                    "total": page.total,
                    "page": page.page,
                    "limit": page.limit,
                    "totalPages": page.total_pages,
                },
            }
        )

    @app.post("/api/admin/users", endpoint="admin_create_user")
    @role_required(Role.ADMIN)
    def admin_create_user(user):
        data = json_body()
        created = container.user_admin_service.create_user(
            email=data.get("email"),
            first_name=data.get("firstName"),
            last_name=data.get("lastName"),
            role=data.get("role"),
            department=data.get("department"),
            employee_id=data.get("employeeId"),
            phone=data.get("phone"),
        )
        return jsonify({"message": "User created successfully", "user": created.to_dict()}), 201

    @app.get("/api/admin/users/<user_id>", endpoint="admin_get_user")
    @role_required(Role.ADMIN)
    def admin_get_user(user, user_id: str):
        return jsonify({"user": container.user_admin_service.get_user(user_id).to_dict()})

    @app.put("/api/admin/users/<user_id>", endpoint="admin_update_user")
    @role_required(Role.ADMIN)
    def admin_update_user(user, user_id: str):
        data = json_body()
        updated = container.user_admin_service.update_user(
            user_id,
            email=data.get("email"),
            first_name=data.get("firstName"),
            last_name=data.get("lastName"),
            phone=data.get("phone"),
            department=data.get("department"),
            role=data.get("role"),
            status=data.get("status"),
            employee_id=data.get("employeeId"),
        )
        return jsonify({"message": "User updated successfully", "user": updated.to_dict()})

    @app.delete("/api/admin/users/<user_id>", endpoint="admin_deactivate_user")
    @role_required(Role.ADMIN)
    def admin_deactivate_user(user, user_id: str):
        updated = container.user_admin_service.deactivate_user(user, user_id)
        return jsonify({"message": "User deactivated successfully", "user": updated.to_dict()})

    @app.post("/api/admin/users/update-role", endpoint="admin_update_role")
    @role_required(Role.ADMIN)
    def admin_update_role(user):
        data = json_body()
        result = container.user_admin_service.update_role(
            data.get("userId") or "",
            data.get("role") or "",
            data.get("department"),
        )
        return jsonify({"success": True, "message": "User role updated successfully", "data": result})

    @app.post("/api/sync-users", endpoint="sync_users")
    @role_required(Role.ADMIN)
    def sync_users(user):
        limit = parse_positive_int(request.args.get("limit"), "limit", DEFAULT_SYNC_LIMIT, maximum=MAX_PAGE_LIMIT)
        result = container.sync_service.sync_from_provider(limit=limit)
        return jsonify(
            {
                "success": True,
                "message": f"Successfully synced {len(result.synced)} users",
                "data": result.to_dict(),
            }
        )
