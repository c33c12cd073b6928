"""Core HR module — Employee and Department CRUD plus headcount reporting.

Routers:
    employees_router   → /api/v1/employees
    departments_router → /api/v1/departments
"""
