from rest_framework import serializers
from letters.models import Letter


class LetterSerializer(serializers.ModelSerializer):
    """Letter as returned to its owner and to admins."""
    summary = serializers.CharField(source='get_summary', read_only=True)
    tags = serializers.ListField(source='get_tags', read_only=True)

    class Meta:
        model = Letter
        fields = [
            'id', 'title', 'sender_name', 'sender_address', 'attorney_name',
            'recipient_name', 'matter', 'resolution', 'jurisdiction',
            'content', 'ai_meta', 'summary', 'tags', 'status',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class AdminLetterSerializer(LetterSerializer):
    """Adds the owner's email for admin listings."""
    user_email = serializers.EmailField(source='user.email', read_only=True)

    class Meta(LetterSerializer.Meta):
        fields = LetterSerializer.Meta.fields + ['user_email']
        read_only_fields = fields


class LetterStatusSerializer(serializers.Serializer):
    """Input for moving a letter along the review timeline."""
    status = serializers.ChoiceField(choices=Letter.STATUS_CHOICES)
