from django.contrib import admin
from .models import Letter


@admin.register(Letter)
class LetterAdmin(admin.ModelAdmin):
    list_display = ['title', 'user', 'recipient_name', 'status', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['title', 'user__email', 'recipient_name', 'attorney_name']
    readonly_fields = ['ai_meta', 'created_at', 'updated_at']
