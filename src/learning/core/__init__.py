"""Client core shared by the terminal and web front ends.

Modules:
- auth: authentication context and role guard
- catalog: quiz availability, topic hierarchy, list filters
- dashboard: dashboard aggregation
- notifications: per-user notification list
- quiz_taking: quiz attempt state machine and countdown
- results: result screen, analytics and CSV export
- management: moderator/admin forms and CRUD
"""

__all__ = [
    "auth",
    "catalog",
    "dashboard",
    "notifications",
    "quiz_taking",
    "results",
    "management",
]
