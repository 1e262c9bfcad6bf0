from django.apps import AppConfig


class ProjectsConfig(AppConfig):
    """Configuration for the projects application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "projects"
    verbose_name = "Projects"
