from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import CustomUser


class CustomUserAdmin(UserAdmin):
    model = CustomUser
    list_display = ['username', 'email', 'role', 'agent_type', 'is_staff']
    list_filter = ['role', 'agent_type', 'is_staff']
    fieldsets = UserAdmin.fieldsets + (
        ('Courier', {'fields': ('role', 'agent_type', 'phone')}),
    )


admin.site.register(CustomUser, CustomUserAdmin)
