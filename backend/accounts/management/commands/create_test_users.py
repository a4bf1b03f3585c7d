from django.core.management.base import BaseCommand
from django.contrib.auth.hashers import make_password
from accounts.models import CustomUser


class Command(BaseCommand):
    help = 'Create test users for every courier role'

    def handle(self, *args, **options):
        users_data = [
            {'username': 'super_admin_user', 'password': 'super_admin_password', 'role': 'super_admin'},
            {'username': 'admin_user', 'password': 'admin_password', 'role': 'admin'},
            {'username': 'pickup_agent', 'password': 'agent_password', 'role': 'agent', 'agent_type': 'PICKUP'},
            {'username': 'delivery_agent', 'password': 'agent_password', 'role': 'agent', 'agent_type': 'DELIVERY'},
            {'username': 'customer_user', 'password': 'customer_password', 'role': 'customer'},
        ]

        for user_data in users_data:
            if CustomUser.objects.filter(username=user_data['username']).exists():
                self.stdout.write(
                    self.style.WARNING(f"User {user_data['username']} already exists")
                )
                continue

            user = CustomUser.objects.create(
                username=user_data['username'],
                password=make_password(user_data['password']),
                role=user_data['role'],
                agent_type=user_data.get('agent_type'),
            )

            self.stdout.write(
                self.style.SUCCESS(f"Successfully created {user_data['role']} user: {user.username}")
            )

        self.stdout.write(
            self.style.SUCCESS("All test users created successfully!")
        )
