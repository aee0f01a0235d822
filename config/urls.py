"""
URL configuration for the hotel maintenance tracker.
"""

from django.contrib import admin
from django.urls import path, include
from django.conf import settings

urlpatterns = [
    path('admin/', admin.site.urls),

    # App URLs
    path('tasks/', include('apps.tasks.urls', namespace='tasks')),
]

if settings.DEBUG and 'debug_toolbar' in settings.INSTALLED_APPS:
    # Debug toolbar
    import debug_toolbar
    urlpatterns = [
        path('__debug__/', include(debug_toolbar.urls)),
    ] + urlpatterns

# Admin site customization
admin.site.site_header = 'Hotel Maintenance Administration'
admin.site.site_title = 'Hotel Maintenance Admin'
admin.site.index_title = 'Welcome to Hotel Maintenance Admin'
