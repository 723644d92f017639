# storage/models.py
from django.db import models


class KeyValueEntry(models.Model):
    """One JSON document stored under a string key."""
    key = models.CharField(max_length=255, primary_key=True)
    value = models.JSONField()

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.key

    class Meta:
        ordering = ['key']
        verbose_name = 'Key-Value Entry'
        verbose_name_plural = 'Key-Value Entries'
