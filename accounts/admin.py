from django.contrib import admin

from .models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ('id', 'first_name', 'last_name', 'mobile', 'email', 'is_active')
    search_fields = ('first_name', 'last_name', 'mobile', 'email')
    list_filter = ('is_active',)
