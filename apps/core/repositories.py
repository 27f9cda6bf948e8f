from enum import Enum

from django.utils import timezone


class Relation(Enum):
    """
    Base for per-model relation sets. Each member's value is a
    (lookup_path, many) pair: many=False loads with select_related,
    many=True with prefetch_related.
    """

    @property
    def path(self):
        return self.value[0]

    @property
    def many(self):
        return self.value[1]


class Repository:
    """
    Storage port over a single Django model.

    Services depend on this instead of calling the ORM directly, which keeps
    the eager-loading rules, soft-delete handling and `updated_at` bookkeeping
    in one place.
    """

    def __init__(self, model, relations=None):
        self.model = model
        self.relations = relations

    def _queryset(self, include=(), include_deleted=False):
        manager = self.model.all_objects if include_deleted else self.model.objects
        queryset = manager.all()
        joined = [rel.path for rel in include if not rel.many]
        prefetched = [rel.path for rel in include if rel.many]
        if joined:
            queryset = queryset.select_related(*joined)
        if prefetched:
            queryset = queryset.prefetch_related(*prefetched)
        return queryset

    def get_by_id(self, pk, include=(), include_deleted=False):
        return self._queryset(include, include_deleted).filter(pk=pk).first()

    def find(self, *conditions, include=(), include_deleted=False, **filters):
        return self._queryset(include, include_deleted).filter(*conditions, **filters)

    def exists(self, *conditions, **filters):
        return self.model.objects.filter(*conditions, **filters).exists()

    def count(self, *conditions, **filters):
        return self.model.objects.filter(*conditions, **filters).count()

    def lock(self, pk):
        """Re-read a row with SELECT ... FOR UPDATE; call inside transaction.atomic()"""
        return self.model.objects.select_for_update().filter(pk=pk).first()

    def add(self, instance):
        instance.save()
        return instance

    def update(self, instance, fields=None):
        instance.updated_at = timezone.now()
        if fields is not None:
            instance.save(update_fields=list(fields) + ['updated_at'])
        else:
            instance.save()
        return instance

    def soft_delete(self, instance):
        instance.soft_delete()
        return instance

    def hard_delete(self, instance):
        instance.delete()
