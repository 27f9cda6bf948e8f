from django.db import models
from django.utils import timezone


class SoftDeleteQuerySet(models.QuerySet):
    def soft_delete(self):
        """Flag every row in the queryset as deleted in one UPDATE"""
        return self.update(is_deleted=True, updated_at=timezone.now())


class SoftDeleteManager(models.Manager.from_queryset(SoftDeleteQuerySet)):
    """Default manager: hides soft-deleted rows"""

    def get_queryset(self):
        return super().get_queryset().filter(is_deleted=False)


class AllObjectsManager(models.Manager.from_queryset(SoftDeleteQuerySet)):
    pass


class BaseModel(models.Model):
    """
    Common audit fields and soft-delete flag shared by every entity.
    `objects` excludes soft-deleted rows, `all_objects` sees everything.
    """
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(null=True, blank=True)
    is_deleted = models.BooleanField(default=False, db_index=True)

    objects = SoftDeleteManager()
    all_objects = AllObjectsManager()

    class Meta:
        abstract = True
        base_manager_name = 'all_objects'

    def touch(self):
        self.updated_at = timezone.now()

    def soft_delete(self):
        self.is_deleted = True
        self.touch()
        self.save(update_fields=['is_deleted', 'updated_at'])
