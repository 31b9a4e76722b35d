from django.urls import path

from . import views

urlpatterns = [
    path('programs/availability/<int:ground_id>/', views.program_availability, name='program_availability'),
    path('programs/<str:kind>/', views.register_program, name='register_program'),
    path('programs/<str:kind>/list/', views.list_programs, name='list_programs'),
    path('programs/<str:kind>/<int:program_id>/', views.update_program, name='update_program'),
    path('programs/<str:kind>/<int:program_id>/deactivate/', views.deactivate_program, name='deactivate_program'),
    path('programs/<str:kind>/<int:program_id>/reactivate/', views.reactivate_program, name='reactivate_program'),
]
