"""
Analytics script configuration.

Not soft-deletable: scripts are plain settings rows that are
removed outright.
"""

from django.db import models

from apps.core.models import TimeStampedModel, generate_id


class AnalyticsScript(TimeStampedModel):
    """Tracking snippet injected into storefront pages."""

    class Type(models.TextChoices):
        GOOGLE_ANALYTICS = 'google_analytics', 'Google Analytics'
        FACEBOOK_PIXEL = 'facebook_pixel', 'Facebook Pixel'
        CUSTOM = 'custom', 'Custom'

    class Location(models.TextChoices):
        HEAD = 'head', 'Head'
        BODY_START = 'body_start', 'Body start'
        BODY_END = 'body_end', 'Body end'

    id = models.CharField(primary_key=True, max_length=32, editable=False)
    name = models.CharField(max_length=100)
    type = models.CharField(max_length=30, choices=Type.choices)
    is_active = models.BooleanField(default=True)
    use_partytown = models.BooleanField(default=True)
    config = models.JSONField(default=dict)
    location = models.CharField(max_length=20, choices=Location.choices, default=Location.HEAD)

    class Meta:
        db_table = 'analytics'
        ordering = ['name']

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.id:
            self.id = generate_id('analytics')
        super().save(*args, **kwargs)
