# shared/common/mixins.py
"""
Model Mixins

Primary key, timestamp and soft delete behaviour shared by the
learning models.
"""

import uuid

from django.db import models
from django.utils import timezone


class UUIDPrimaryKeyMixin(models.Model):
    """UUID primary key; ids travel between services as strings."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    class Meta:
        abstract = True


class TimestampMixin(models.Model):
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class ActiveQuerySet(models.QuerySet):
    """Queryset helpers for soft-deletable rows."""

    def deleted(self):
        return self.filter(is_deleted=True)


class ActiveManager(models.Manager.from_queryset(ActiveQuerySet)):
    """
    Default manager for soft-deletable models.

    Returns live rows only. Callers that must see deleted rows (attempt
    history, admin) ask for them with `include_deleted()`. Related
    lookups through the base manager are unfiltered, so an attempt can
    still reach its soft-deleted quiz.
    """

    def get_queryset(self):
        return super().get_queryset().filter(is_deleted=False)

    def include_deleted(self):
        return super().get_queryset()


class SoftDeleteMixin(models.Model):
    """
    Rows hidden from the default manager instead of being removed.

    Used for content that learners may already hold progress or attempts
    against.
    """

    is_deleted = models.BooleanField(default=False, db_index=True)
    deleted_at = models.DateTimeField(null=True, blank=True)
    deleted_by = models.UUIDField(
        null=True,
        blank=True,
        help_text="Staff member who removed the content"
    )

    objects = ActiveManager()

    class Meta:
        abstract = True

    def soft_delete(self, deleted_by=None):
        """Hide the row; `deleted_by` is a user id or None."""
        self.is_deleted = True
        self.deleted_at = timezone.now()
        self.deleted_by = deleted_by
        self.save(update_fields=['is_deleted', 'deleted_at', 'deleted_by'])

    def restore(self):
        self.is_deleted = False
        self.deleted_at = None
        self.deleted_by = None
        self.save(update_fields=['is_deleted', 'deleted_at', 'deleted_by'])
