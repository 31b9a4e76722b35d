from django.urls import path

from . import views

urlpatterns = [
    path('availability/', views.availability, name='availability'),

    path('bookings/', views.create_booking, name='create_booking'),
    path('bookings/list/', views.list_bookings, name='list_bookings'),
    path('bookings/<uuid:booking_id>/', views.update_booking, name='update_booking'),

    path('reservations/', views.create_reservation, name='create_reservation'),
    path('reservations/list/', views.list_reservations, name='list_reservations'),
    path('reservations/remove/', views.remove_reservations, name='remove_reservations'),
    path('reservations/<int:reservation_id>/', views.reservation_detail, name='reservation_detail'),
    path('reservations/<int:reservation_id>/slots/', views.add_reservation_slot, name='add_reservation_slot'),
    path('reservations/<int:reservation_id>/cancel/', views.cancel_reservation, name='cancel_reservation'),
    path('customers/<int:customer_id>/bookings/', views.customer_bookings, name='customer_bookings'),
    path('reservation-slots/<int:slot_id>/', views.mutate_reservation_slot, name='mutate_reservation_slot'),
]
