from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include('grounds.urls')),
    path('api/', include('bookings.urls')),
    path('api/', include('programs.urls')),
    path('api/', include('events.urls')),
]
