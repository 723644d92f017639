from django.contrib import admin
from .models import KeyValueEntry


@admin.register(KeyValueEntry)
class KeyValueEntryAdmin(admin.ModelAdmin):
    list_display    = ['key', 'created_at', 'updated_at']
    search_fields   = ['key']
    ordering        = ['key']
    readonly_fields = ['created_at', 'updated_at']
