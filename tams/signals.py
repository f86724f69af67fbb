from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import Inspection, InspectionComponentScore
from .services.inspection_scores import recompute_inspection_scores


@receiver(post_save, sender=InspectionComponentScore)
def rescore_after_component_save(sender, instance, raw=False, **kwargs):
    if raw:
        return
    recompute_inspection_scores(instance.inspection)


@receiver(post_delete, sender=InspectionComponentScore)
def rescore_after_component_delete(sender, instance, origin=None, **kwargs):
    # Bulk and cascading deletes rescore once from their caller.
    if origin is not instance:
        return
    if Inspection.objects.filter(pk=instance.inspection_id).exists():
        recompute_inspection_scores(instance.inspection)
