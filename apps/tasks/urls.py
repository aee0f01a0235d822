"""
URL configuration for tasks app.

Includes:
- Recurring templates (list, create, delete, child tasks)
- Manual recurring task sweep
- Status changes
"""

from django.urls import path
from . import views

app_name = 'tasks'

urlpatterns = [
    # Recurring templates
    path('recurring/', views.recurring_template_list, name='recurring_template_list'),
    path('recurring/create/', views.recurring_template_create, name='recurring_template_create'),
    path('recurring/process/', views.process_recurring_tasks_view, name='process_recurring_tasks'),
    path('recurring/<int:pk>/children/', views.recurring_template_children, name='recurring_template_children'),
    path('recurring/<int:pk>/delete/', views.recurring_template_delete, name='recurring_template_delete'),

    # Status changes
    path('<int:pk>/status/', views.task_status_change, name='task_status_change'),
]
