from django.apps import AppConfig


class AppointmentsConfig(AppConfig):
    name = 'apps.appointments'
    verbose_name = 'Appointments'

    def ready(self):
        """Import and connect signals when app is ready"""
        import apps.appointments.signals  # noqa: F401
