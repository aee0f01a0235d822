"""
Permission helpers for tasks app.

Role-based access control for task operations:
- Admin: Full access, can trigger the recurring task sweep
- Supervisor (sef): Manages recurring templates, moves any task
- Operator / Manager / Receptionist: See all tasks
- Technician (radnik / serviser): Sees and works on assigned tasks only
"""

from .models import Task
from apps.accounts.models import User


# Roles that see every task in the hotel
OVERVIEW_ROLES = [
    User.Role.ADMIN,
    User.Role.SEF,
    User.Role.OPERATER,
    User.Role.MENADZER,
    User.Role.RECEPCIONER,
]

# Roles that dispatch tasks through the workflow
DISPATCH_ROLES = [User.Role.ADMIN, User.Role.SEF, User.Role.OPERATER]


# =============================================================================
# View Permissions
# =============================================================================

def get_visible_tasks(user):
    """
    Get queryset of tasks visible to user.
    """
    if user.is_admin() or user.role in OVERVIEW_ROLES:
        return Task.objects.all()

    return Task.objects.filter(assignees=user).distinct()


def can_view_task(user, task):
    """Overview roles see every task; technicians only tasks assigned to them."""
    if user.is_admin() or user.role in OVERVIEW_ROLES:
        return True
    return task.assignees.filter(pk=user.pk).exists()


# =============================================================================
# Action Permissions
# =============================================================================

def can_manage_recurring_tasks(user):
    """Create and delete recurring templates."""
    return user.can_manage_recurring_tasks()


def can_change_status(user, task):
    """
    Check if user can move a task through the workflow.

    Dispatchers can move any task; technicians only the ones assigned to them.
    """
    if task.is_terminal:
        return False

    if user.is_admin() or user.role in DISPATCH_ROLES:
        return True

    return user.is_technician() and task.assignees.filter(pk=user.pk).exists()


def get_assignable_users(user):
    """
    Get queryset of users that can be assigned to tasks.
    """
    if not (user.is_admin() or user.role in DISPATCH_ROLES):
        return User.objects.none()

    return User.objects.filter(
        is_active=True,
        role__in=[User.Role.RADNIK, User.Role.SERVISER],
    ).order_by('first_name', 'last_name')
