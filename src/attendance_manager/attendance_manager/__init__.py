"""Attendance Manager package.

Organized by feature modules (users, attendance, reports, ...) with a thin
Flask controller layer over service/repository layers. Identity is delegated
to an external provider and reconciled with the local user directory in
``auth``.
"""
