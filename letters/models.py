from django.conf import settings
from django.db import models


class Letter(models.Model):
    """AI-generated legal letter draft."""

    STATUS_RECEIVED = 'received'
    STATUS_UNDER_REVIEW = 'under_review'
    STATUS_POSTED = 'posted'
    STATUS_CHOICES = [
        (STATUS_RECEIVED, 'Received'),
        (STATUS_UNDER_REVIEW, 'Under Review'),
        (STATUS_POSTED, 'Posted'),
    ]

    # Allowed forward moves in the review timeline
    STATUS_TRANSITIONS = {
        STATUS_RECEIVED: [STATUS_UNDER_REVIEW],
        STATUS_UNDER_REVIEW: [STATUS_POSTED],
        STATUS_POSTED: [],
    }

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='letters')
    title = models.CharField(max_length=255)
    sender_name = models.CharField(max_length=255)
    sender_address = models.TextField(blank=True)
    attorney_name = models.CharField(max_length=255)
    recipient_name = models.CharField(max_length=255)
    matter = models.TextField()
    resolution = models.TextField()
    jurisdiction = models.CharField(max_length=255, blank=True)
    content = models.TextField()
    ai_meta = models.JSONField(default=dict, blank=True, help_text='Full structured output from the AI')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_RECEIVED)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.title} - {self.user.email}"

    def can_transition_to(self, new_status):
        return new_status in self.STATUS_TRANSITIONS.get(self.status, [])

    def get_summary(self):
        return (self.ai_meta or {}).get('summary', '')

    def get_tags(self):
        return (self.ai_meta or {}).get('tags', [])
