from django.urls import path

from . import views

urlpatterns = [
    path('grounds/<int:ground_id>/slots/', views.ground_slots, name='ground_slots'),
    path('grounds/<int:ground_id>/slots/add/', views.add_slot, name='add_slot'),
    path('slots/<int:slot_id>/', views.update_slot, name='update_slot'),
]
