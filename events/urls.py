from django.urls import path

from . import views

urlpatterns = [
    path('events/', views.create_event, name='create_event'),
    path('events/availability/', views.event_availability, name='event_availability'),
    path('events/list/', views.list_events, name='list_events'),
    path('events/<int:event_id>/', views.update_event, name='update_event'),
    path('events/<int:event_id>/deactivate/', views.deactivate_event, name='deactivate_event'),
    path('events/<int:event_id>/reactivate/', views.reactivate_event, name='reactivate_event'),
]
