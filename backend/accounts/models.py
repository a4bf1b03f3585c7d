# backend/accounts/models.py

from django.contrib.auth.models import AbstractUser
from django.db import models


class CustomUser(AbstractUser):
    ROLE_CHOICES = [
        ('super_admin', 'Super admin'),
        ('admin', 'Admin'),
        ('agent', 'Agent'),
        ('customer', 'Customer'),
    ]
    AGENT_TYPE_CHOICES = [
        ('PICKUP', 'Pickup'),
        ('DELIVERY', 'Delivery'),
    ]
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='customer')
    agent_type = models.CharField(max_length=10, choices=AGENT_TYPE_CHOICES, blank=True, null=True)
    phone = models.CharField(max_length=32, blank=True, default='')

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"
