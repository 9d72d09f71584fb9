# core/mixins/audit_fields.py
from django.db import models


class AuditFieldsMixin(models.Model):
    """Adds created/updated audit fields to models"""
    created_at = models.DateTimeField(auto_now_add=True, editable=False)
    updated_at = models.DateTimeField(auto_now=True, editable=False)
    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_%(class)ss',
        editable=False
    )
    updated_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='updated_%(class)ss',
        editable=False
    )

    class Meta:
        abstract = True

    def stamp(self, user):
        """Record the acting user on create/update"""
        if user is not None and getattr(user, 'is_authenticated', False):
            if self._state.adding and self.created_by_id is None:
                self.created_by = user
            self.updated_by = user
